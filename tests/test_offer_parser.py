# tests/test_offer_parser.py

import pytest

from card_table_pipeline.models import IntroOffer, RewardSet
from card_table_pipeline.offer_parser import RegexOfferParser


@pytest.fixture
def parser():
    return RegexOfferParser()


def _summary(rewards: RewardSet):
    return [(c.rate, c.category, c.currency, c.platform) for c in rewards.categories]


class TestParseRewards:

    def test_grocery_cash_back_cut_at_up_to(self, parser):
        rewards = parser.parse_rewards("2% cash back at grocery stores on up to $6,000 per year")

        assert _summary(rewards) == [("2%", "groceries", "percent", None)]
        assert rewards.categories[0].raw_category == "grocery stores"

    def test_categories_follow_text_order(self, parser):
        text = (
            "Earn 5% cash back on travel purchased through Chase Travel, "
            "3% on dining and 1% on all other purchases."
        )
        assert _summary(parser.parse_rewards(text)) == [
            ("5%", "travel", "percent", "Chase Travel"),
            ("3%", "restaurants", "percent", None),
            ("1%", "general", "percent", None),
        ]

    def test_multipliers(self, parser):
        text = (
            "5x on travel purchased through Chase Travel℠, 3x on dining, "
            "2x on all other travel purchases and 1x on all other purchases"
        )
        assert _summary(parser.parse_rewards(text)) == [
            ("5x", "travel", "points", "Chase Travel"),
            ("3x", "restaurants", "points", None),
            ("2x", "travel", "points", None),
            ("1x", "general", "points", None),
        ]

    def test_multiplier_with_miles_unit(self, parser):
        rewards = parser.parse_rewards("Earn 10X miles on hotels booked through Capital One Travel")

        assert _summary(rewards) == [("10x", "travel", "miles", "Capital One Travel")]

    def test_multiplier_with_program_name(self, parser):
        rewards = parser.parse_rewards("Earn 3X Membership Rewards® points at restaurants worldwide")

        assert _summary(rewards) == [("3x", "restaurants", "points", None)]

    def test_per_dollar_rate(self, parser):
        rewards = parser.parse_rewards("Earn unlimited 2 miles per dollar on every purchase, every day.")

        assert _summary(rewards) == [("2", "general", "miles", None)]

    def test_parenthetical_ends_category(self, parser):
        rewards = parser.parse_rewards("3% cash back at U.S. supermarkets (on up to $6,000 per year)")

        assert _summary(rewards) == [("3%", "groceries", "percent", None)]
        assert rewards.categories[0].raw_category == "U.S. supermarkets"

    def test_unknown_category_keeps_residue(self, parser):
        rewards = parser.parse_rewards("4% cash back on home improvement purchases.")

        assert _summary(rewards) == [("4%", "home improvement", "percent", None)]

    def test_repeated_entries_are_kept(self, parser):
        rewards = parser.parse_rewards("3% on dining. 3% on dining.")

        assert len(rewards.categories) == 2

    @pytest.mark.parametrize("text", [None, "", "   ", "Earn rewards on everything you buy"])
    def test_no_matches_gives_empty_set(self, parser, text):
        assert parser.parse_rewards(text) == RewardSet()


class TestParseIntroOffer:

    @pytest.mark.parametrize("text", ["N/A", "n/a", "NA", " na "])
    def test_not_available(self, parser, text):
        offer = parser.parse_intro_offer(text)

        assert offer == IntroOffer()
        assert offer.bonus_amount is None
        assert offer.currency is None

    @pytest.mark.parametrize("text", ["Cashback Match", "Discover it® CASHBACK MATCH™ after your first year"])
    def test_cashback_match(self, parser, text):
        assert parser.parse_intro_offer(text) == IntroOffer(bonus_amount="match", currency="cashback")

    def test_bonus_spend_and_time(self, parser):
        offer = parser.parse_intro_offer("Earn a $200 bonus after you spend $500 in the first 3 months")

        assert offer.bonus_amount == 200
        assert offer.currency == "dollars"
        assert offer.spend_requirement == 500
        assert offer.time_limit == "3 months"
        assert offer.apr_info is None

    def test_multiple_dollar_amounts_are_summed(self, parser):
        offer = parser.parse_intro_offer("Earn $200 cash back plus a $100 statement credit")

        assert offer.bonus_amount == 300
        assert offer.currency == "dollars"
        assert offer.additional_benefits == ["statement credit", "credit"]

    def test_points_bonus(self, parser):
        offer = parser.parse_intro_offer(
            "Earn 60,000 bonus points after you spend $4,000 on purchases in the first 3 months from account opening."
        )

        assert offer.bonus_amount == 60000
        assert offer.currency == "points"
        assert offer.spend_requirement == 4000
        assert offer.time_limit == "3 months"

    def test_miles_bonus(self, parser):
        offer = parser.parse_intro_offer("75,000 Miles")

        assert offer.bonus_amount == 75000
        assert offer.currency == "miles"

    def test_noise_phrases_removed(self, parser):
        offer = parser.parse_intro_offer("As high as $300 Find out your offer")

        assert offer.bonus_amount == 300
        assert offer.currency == "dollars"

    def test_spend_in_purchases_form(self, parser):
        offer = parser.parse_intro_offer("$250 bonus when you make $1,000 in purchases within 90 days")

        assert offer.bonus_amount == 250
        assert offer.spend_requirement == 1000
        assert offer.time_limit is None

    def test_intro_apr(self, parser):
        offer = parser.parse_intro_offer("0% intro APR for 15 months on purchases and balance transfers")

        assert offer.apr_info == "0% intro APR for 15 months"
        assert offer.bonus_amount is None
        assert offer.time_limit is None

    def test_benefit_keywords(self, parser):
        offer = parser.parse_intro_offer("No annual fee and no foreign transaction fees")

        assert offer.additional_benefits == ["no annual fee", "no foreign transaction fees"]

    @pytest.mark.parametrize("text", [None, ""])
    def test_empty_input(self, parser, text):
        assert parser.parse_intro_offer(text) == IntroOffer()
