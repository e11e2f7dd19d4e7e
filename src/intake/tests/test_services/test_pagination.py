import pytest

from intake.services.pagination import Pagination


@pytest.mark.parametrize(
    "page, size, expected",
    [
        (1, 10, (1, 10)),
        (0, 10, (1, 10)),
        (-3, 10, (1, 10)),
        (2, 0, (2, 1)),
        (2, -5, (2, 1)),
        (1, 500, (1, 50)),
        (None, None, (1, 1)),
    ],
)
def test_clamp(page, size, expected):
    p = Pagination.clamp(page, size, max_page_size=50)
    assert (p.page, p.page_size) == expected


def test_offset():
    assert Pagination(page=3, page_size=20).offset == 40


def test_page_payload():
    payload = Pagination(page=2, page_size=5).to_page(["a", "b"], total=12)

    assert payload == {
        "items": ["a", "b"],
        "total": 12,
        "page": 2,
        "pageSize": 5,
        "totalPages": 3,
        "hasNextPage": True,
        "hasPrevPage": True,
    }


def test_empty_page_payload():
    payload = Pagination(page=1, page_size=5).to_page([], total=0)

    assert payload["totalPages"] == 0
    assert payload["hasNextPage"] is False
    assert payload["hasPrevPage"] is False


def test_last_page_has_no_next():
    payload = Pagination(page=3, page_size=5).to_page(["x"], total=11)
    assert payload["hasNextPage"] is False
