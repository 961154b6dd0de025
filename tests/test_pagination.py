"""
Paginator tests.
"""
import pytest

from app.services.errors import ValidationError
from app.services.pagination import coerce_page_params, paginate


class TestPaginate:

    def test_first_page(self):
        p = paginate(1, 10, 50)
        assert p.offset == 0
        assert p.total_pages == 5
        assert p.has_next is True
        assert p.has_prev is False

    def test_last_page(self):
        p = paginate(5, 10, 50)
        assert p.offset == 40
        assert p.has_next is False
        assert p.has_prev is True

    def test_partial_last_page_rounds_up(self):
        assert paginate(1, 20, 41).total_pages == 3

    def test_empty_set(self):
        p = paginate(1, 10, 0)
        assert p.total_pages == 0
        assert p.has_next is False
        assert p.has_prev is False

    def test_page_past_the_end(self):
        p = paginate(9, 10, 50)
        assert p.offset == 80
        assert p.has_next is False
        assert p.has_prev is True

    @pytest.mark.parametrize("page,limit", [(0, 10), (-1, 10), (1, 0), (1, -5)])
    def test_rejects_non_positive(self, page, limit):
        with pytest.raises(ValidationError):
            paginate(page, limit, 10)

    def test_wire_shape(self):
        assert paginate(2, 10, 25).to_dict() == {
            "page": 2,
            "limit": 10,
            "total": 25,
            "totalPages": 3,
            "hasNext": True,
            "hasPrev": True,
        }


class TestCoercePageParams:

    def test_defaults(self):
        assert coerce_page_params() == (1, 20)

    def test_query_strings(self):
        assert coerce_page_params("3", " 15 ") == (3, 15)

    def test_ints_pass_through(self):
        assert coerce_page_params(2, 5) == (2, 5)

    @pytest.mark.parametrize("page", ["abc", "1.5", "-1", "0", "", True, 0, 2.0])
    def test_invalid_page(self, page):
        with pytest.raises(ValidationError) as exc:
            coerce_page_params(page, 10)
        assert exc.value.field == "page"

    @pytest.mark.parametrize("limit", ["ten", "0", False, -3])
    def test_invalid_limit(self, limit):
        with pytest.raises(ValidationError) as exc:
            coerce_page_params(1, limit)
        assert exc.value.field == "limit"
