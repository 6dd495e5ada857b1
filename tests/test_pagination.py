"""Unit tests for the page-window renderer."""

import pytest

from client_registry.pagination import Page, PageRender, render_page, window_bounds


def make_page(number: int, total_pages: int, size: int = 4) -> Page:
    return Page(content=[], number=number, size=size, total_elements=total_pages * size)


class TestPage:
    """Test the Page container."""

    @pytest.mark.parametrize("total,size,expected", [
        (0, 4, 0),
        (1, 4, 1),
        (4, 4, 1),
        (5, 4, 2),
        (40, 4, 10),
    ])
    def test_total_pages(self, total, size, expected):
        assert Page(content=[], number=0, size=size, total_elements=total).total_pages == expected


class TestWindowBounds:
    """Test window_bounds clamping."""

    def test_all_pages_fit(self):
        assert window_bounds(current=2, total_pages=5, window_size=10) == (0, 5)

    def test_window_at_start(self):
        assert window_bounds(current=1, total_pages=30, window_size=10) == (0, 10)

    def test_window_at_end(self):
        assert window_bounds(current=28, total_pages=30, window_size=10) == (20, 30)

    def test_window_in_middle(self):
        assert window_bounds(current=15, total_pages=30, window_size=10) == (10, 20)

    def test_no_pages(self):
        assert window_bounds(current=0, total_pages=0) == (0, 0)

    def test_invalid_window_size(self):
        with pytest.raises(ValueError, match="window_size must be positive"):
            window_bounds(current=0, total_pages=3, window_size=0)

    @pytest.mark.parametrize("total_pages", [1, 2, 9, 10, 11, 25])
    @pytest.mark.parametrize("window_size", [1, 3, 4, 10])
    def test_window_contains_current(self, total_pages, window_size):
        """Every valid page sees a non-empty in-range window holding itself."""
        for current in range(total_pages):
            start, end = window_bounds(current, total_pages, window_size)
            assert 0 <= start < end <= total_pages
            assert start <= current < end
            assert end - start == min(window_size, total_pages)


class TestRenderPage:
    """Test render_page navigation metadata."""

    def test_middle_page_has_previous_and_next(self):
        """Page 2 of 10 with 4 per page exposes both directions."""
        render = render_page(make_page(number=2, total_pages=10))

        assert isinstance(render, PageRender)
        assert render.has_previous is True
        assert render.has_next is True
        assert 2 in render.numbers
        assert render.previous_url == "/listar?page=1"
        assert render.next_url == "/listar?page=3"

    def test_first_page(self):
        render = render_page(make_page(number=0, total_pages=3))

        assert render.is_first is True
        assert render.is_last is False
        assert render.has_previous is False
        assert render.previous_url is None
        assert render.next_url == "/listar?page=1"

    def test_last_page(self):
        render = render_page(make_page(number=2, total_pages=3))

        assert render.is_last is True
        assert render.has_next is False
        assert render.next_url is None

    def test_items_carry_links_and_labels(self):
        render = render_page(make_page(number=1, total_pages=3))

        assert [item.url for item in render.items] == [
            "/listar?page=0",
            "/listar?page=1",
            "/listar?page=2",
        ]
        assert [item.label for item in render.items] == [1, 2, 3]
        assert [item.current for item in render.items] == [False, True, False]

    def test_first_and_last_links_outside_window(self):
        render = render_page(make_page(number=15, total_pages=30), window_size=10)

        assert render.numbers == list(range(10, 20))
        assert render.show_first is True
        assert render.show_last is True
        assert render.first_url == "/listar?page=0"
        assert render.last_url == "/listar?page=29"

    def test_first_and_last_inside_window(self):
        render = render_page(make_page(number=1, total_pages=4))

        assert render.show_first is False
        assert render.show_last is False

    def test_custom_url_template(self):
        render = render_page(make_page(number=0, total_pages=2), url_template="/clientes?p={page}")

        assert render.next_url == "/clientes?p=1"

    def test_empty_result(self):
        render = render_page(Page(content=[], number=0, size=4, total_elements=0))

        assert render.items == []
        assert render.total_pages == 0
        assert render.has_previous is False
        assert render.has_next is False
        assert render.first_url is None
        assert render.last_url is None

    def test_page_past_the_end(self):
        """A page index beyond the data links back to the last page."""
        render = render_page(Page(content=[], number=7, size=4, total_elements=8))

        assert render.total_pages == 2
        assert render.has_next is False
        assert render.has_previous is True
        assert render.previous_url == "/listar?page=1"
        assert all(not item.current for item in render.items)

    def test_is_pure(self):
        page = make_page(number=5, total_pages=12)
        assert render_page(page) == render_page(page)
