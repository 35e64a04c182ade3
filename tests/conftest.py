# tests/conftest.py

from __future__ import annotations

import pytest


def _row(name_cell: str, rating: str, fee: str, rewards: str, intro: str, img: str = "") -> str:
    return (
        "<tr>"
        f"<td>{img}{name_cell}</td>"
        f"<td>{rating}</td>"
        f"<td>{fee}</td>"
        f"<td>{rewards}</td>"
        f"<td>{intro}</td>"
        "</tr>"
    )


def _tagged(name: str) -> str:
    return f'<a href="#"><span data-testid="summary-table-card-name-0">{name}</span></a>'


@pytest.fixture
def table_html() -> str:
    """
    A comparison table with good rows, an ad row, a placeholder row, a
    data-less row, and a duplicate.
    """
    rows = [
        # 0: full card, both tooltips, image
        _row(
            _tagged("Chase Sapphire Preferred® Card"),
            "<span>4.9</span><span>/5</span>",
            "$95",
            "5x-2x <button aria-label='info'>i</button>",
            "60,000 Points <button aria-label='info'>i</button>",
            img='<img src="//cdn.example.com/csp.png" alt="Chase Sapphire Preferred">',
        ),
        # 1: ad row, too few cells
        '<tr><td colspan="5">Advertiser disclosure</td></tr>',
        # 2: placeholder name
        _row(_tagged("ref: &lt;Node&gt;"), "4.0/5", "$0", "1%", "N/A"),
        # 3: no tagged element, falls back to the first inline element
        _row("<strong>Citi Double Cash® Card</strong> <em>Apply</em>", "4.8/5", "$0", "2%", "$200"),
        # 4: no fee and no rewards
        _row(_tagged("Mystery Card"), "3.5/5", "", "", "N/A"),
        # 5: image via data-src, no tooltips
        _row(
            _tagged("Wells Fargo Active Cash® Card"),
            "4.7/5",
            "$0",
            "2%",
            "$200",
            img='<img data-src="/art/active-cash.png">',
        ),
        # 6: same identity as row 0
        _row(
            _tagged("Chase Sapphire Preferred® Card"),
            "4.9/5",
            "$95",
            "5x-2x <button aria-label='info'>i</button>",
            "60,000 Points",
        ),
    ]
    return (
        "<html><body><main>"
        "<table><thead><tr><th>Card</th></tr></thead>"
        f"<tbody>{''.join(rows)}</tbody></table>"
        "</main></body></html>"
    )
