"""
Tests for core.templates

Test Coverage:
- Built-in templates: grid sizes, card sizes, fit on A4
- resolve_template_id(): ids, strings, legacy numbers
- LayoutTemplate validation
"""
import pytest

from memory_sheet.core.templates import (
    DEFAULT_TEMPLATE_ID,
    TEMPLATES,
    LayoutTemplate,
    TemplateId,
    TemplateKind,
    UnknownTemplateError,
    get_template,
    list_templates,
    resolve_template_id,
)


class TestBuiltInTemplates:
    """Tests for the registered templates."""

    def test_every_id_registered(self):
        assert set(TEMPLATES) == set(TemplateId)

    def test_default_is_grid_4(self):
        assert DEFAULT_TEMPLATE_ID is TemplateId.GRID_4

    @pytest.mark.parametrize("key,rows,cols", [
        (TemplateId.GRID_4, 2, 2),
        (TemplateId.GRID_6, 3, 2),
        (TemplateId.GRID_8, 4, 2),
        (TemplateId.BORDERLESS_12, 4, 3),
    ])
    def test_grid_shape(self, key, rows, cols):
        template = get_template(key)
        assert (template.rows, template.cols) == (rows, cols)
        assert template.cards_per_page == rows * cols

    def test_grid_4_geometry(self):
        template = get_template("grid-4")
        assert template.cell_width_mm == pytest.approx(93.0)
        assert template.cell_height_mm == pytest.approx(136.5)
        assert template.card_mm == pytest.approx(93.0)

    def test_grid_8_card_limited_by_height(self):
        template = get_template("grid-8")
        # (297 - 20 - 12) / 4
        assert template.cell_height_mm == pytest.approx(66.25)
        assert template.card_mm == pytest.approx(66.25)

    def test_borderless_fills_width(self):
        template = get_template(TemplateId.BORDERLESS_12)
        assert template.kind is TemplateKind.BORDERLESS
        assert template.card_mm == 70.0
        assert template.grid_width_mm == pytest.approx(210.0)
        assert template.strip_width_mm + template.grid_height_mm == pytest.approx(297.0)

    @pytest.mark.parametrize("template", list(TEMPLATES.values()), ids=lambda t: t.template_id.value)
    def test_cards_fit_cells(self, template):
        assert template.card_mm <= template.cell_width_mm + 1e-9
        assert template.card_mm <= template.cell_height_mm + 1e-9

    def test_list_templates_order(self):
        assert [t.template_id for t in list_templates()] == list(TEMPLATES)

    def test_describe(self):
        text = get_template("grid-4").describe()
        assert text.startswith("grid-4:")
        assert "93.0 mm" in text


class TestResolveTemplateId:
    """Tests for template key normalization."""

    @pytest.mark.parametrize("key,expected", [
        (TemplateId.GRID_6, TemplateId.GRID_6),
        ("grid-6", TemplateId.GRID_6),
        (" GRID-8 ", TemplateId.GRID_8),
        ("borderless-12", TemplateId.BORDERLESS_12),
        (4, TemplateId.GRID_4),
        ("8", TemplateId.GRID_8),
    ])
    def test_resolves(self, key, expected):
        assert resolve_template_id(key) is expected

    @pytest.mark.parametrize("key", ["grid-5", "", 12, 5, True, "twelve"])
    def test_unknown_raises(self, key):
        with pytest.raises(UnknownTemplateError):
            resolve_template_id(key)

    def test_unknown_is_key_error(self):
        with pytest.raises(KeyError):
            get_template("nope")


class TestLayoutTemplateValidation:
    """Tests for LayoutTemplate.__post_init__."""

    def _uniform(self, **overrides):
        params = dict(
            template_id=TemplateId.GRID_4,
            label="test",
            kind=TemplateKind.UNIFORM,
            page_width_mm=210,
            page_height_mm=297,
            rows=2,
            cols=2,
            margin_mm=10,
            gutter_mm=4,
        )
        params.update(overrides)
        return LayoutTemplate(**params)

    def test_valid(self):
        assert self._uniform().card_mm == pytest.approx(93.0)

    def test_zero_rows_rejected(self):
        with pytest.raises(ValueError):
            self._uniform(rows=0)

    def test_margins_exceeding_page_rejected(self):
        with pytest.raises(ValueError):
            self._uniform(margin_mm=120)

    def test_negative_gutter_rejected(self):
        with pytest.raises(ValueError):
            self._uniform(gutter_mm=-1)

    def test_pinned_card_too_large_rejected(self):
        with pytest.raises(ValueError, match="does not fit"):
            self._uniform(card_size_mm=100)

    def test_strip_reduces_cell_height(self):
        template = self._uniform(strip_width_mm=17)
        assert template.cell_height_mm == pytest.approx((297 - 17 - 20 - 4) / 2)

    def test_borderless_requires_card_size(self):
        with pytest.raises(ValueError):
            self._uniform(kind=TemplateKind.BORDERLESS, margin_mm=0, gutter_mm=0)

    def test_borderless_grid_too_tall_rejected(self):
        with pytest.raises(ValueError, match="height"):
            self._uniform(
                kind=TemplateKind.BORDERLESS, margin_mm=0, gutter_mm=0,
                rows=5, cols=3, card_size_mm=70,
            )
