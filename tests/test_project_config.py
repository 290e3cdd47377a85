"""
Unit tests for drawing_viewport.project_config module.

Tests:
- Configuration section dataclasses
- JSON serialization/deserialization
- Config file lookup and loading
- Config merging
- Dimension style produced from config defaults
"""

import json
import tempfile
from pathlib import Path

import pytest

from drawing_viewport.drawing.dimensions import ArrowStyle, DimensionConfig
from drawing_viewport.project_config import (
    DimensionDefaultsConfig,
    HitTestConfig,
    LayoutConfig,
    ProjectConfig,
    SnapConfig,
    ViewportConfig,
    create_sample_config,
    find_config_file,
    load_config,
    merge_configs,
)


class TestViewportConfig:
    """Tests for ViewportConfig dataclass."""

    def test_default_values(self):
        """Test default canvas fit and zoom limits."""
        config = ViewportConfig()
        assert config.outer_margin_px == 10.0
        assert config.fit_factor == 0.95
        assert config.zoom_min == 0.1
        assert config.zoom_max == 5.0
        assert config.theme == "blueprint"

    def test_zoom_steps(self):
        """Test wheel zoom factors."""
        config = ViewportConfig()
        assert config.zoom_in_step == pytest.approx(1.1)
        assert config.zoom_out_step == pytest.approx(0.9)


class TestHitTestConfig:
    """Tests for HitTestConfig dataclass."""

    def test_default_tolerances(self):
        """Test default hit-test tolerances in paper mm."""
        config = HitTestConfig()
        assert config.line_tolerance == 10.0
        assert config.endpoint_factor == 1.5
        assert config.dimension_tolerance == 8.0
        assert config.text_radius == 15.0
        assert config.annotation_tolerance == 8.0
        assert config.view_padding == 15.0


class TestSnapConfig:
    """Tests for SnapConfig dataclass."""

    def test_all_types_enabled_by_default(self):
        """Test snap type flags are True by default."""
        config = SnapConfig()
        assert config.endpoints is True
        assert config.midpoints is True
        assert config.intersections is True
        assert config.nearest is True

    def test_screen_tolerance(self):
        """Test default screen-space snap tolerance."""
        assert SnapConfig().screen_tolerance_px == 18.0


class TestLayoutConfig:
    """Tests for LayoutConfig dataclass."""

    def test_defaults(self):
        """Test default layout gap and new view spacing."""
        config = LayoutConfig()
        assert config.gap == 8.0
        assert config.new_view_spacing == 15.0
        assert config.bias_x == 0.05
        assert config.bias_y == 0.08


class TestDimensionDefaultsConfig:
    """Tests for DimensionDefaultsConfig dataclass."""

    def test_to_dimension_config(self):
        """Test conversion to the drawing dimension style."""
        config = DimensionDefaultsConfig(arrow_style="tick", precision=0, show_unit=True)
        style = config.to_dimension_config()

        assert isinstance(style, DimensionConfig)
        assert style.arrow_style == ArrowStyle.TICK
        assert style.precision == 0
        assert style.show_unit is True
        assert style.offset == 10.0

    def test_defaults_match_dimension_config(self):
        """Test that default values produce the default dimension style."""
        assert DimensionDefaultsConfig().to_dimension_config() == DimensionConfig()

    def test_unknown_arrow_style_raises(self):
        """Test that an unknown arrow style is rejected."""
        with pytest.raises(ValueError):
            DimensionDefaultsConfig(arrow_style="hollow").to_dimension_config()


class TestProjectConfig:
    """Tests for ProjectConfig dataclass."""

    def test_default_config(self):
        """Test creating default configuration."""
        config = ProjectConfig()
        assert isinstance(config.viewport, ViewportConfig)
        assert isinstance(config.hit_test, HitTestConfig)
        assert isinstance(config.snap, SnapConfig)
        assert isinstance(config.layout, LayoutConfig)
        assert isinstance(config.dimensions, DimensionDefaultsConfig)

    def test_to_dict(self):
        """Test converting config to dictionary."""
        d = ProjectConfig().to_dict()

        assert set(d) == {'viewport', 'hit_test', 'snap', 'layout', 'dimensions'}
        assert d['viewport']['theme'] == 'blueprint'

    def test_to_json(self):
        """Test converting config to JSON string."""
        data = json.loads(ProjectConfig().to_json())
        assert 'snap' in data

    def test_from_dict(self):
        """Test creating config from dictionary."""
        data = {
            'viewport': {'theme': 'white', 'zoom_max': 8.0},
            'snap': {'nearest': False},
        }
        config = ProjectConfig.from_dict(data)

        assert config.viewport.theme == 'white'
        assert config.viewport.zoom_max == 8.0
        assert config.snap.nearest is False
        assert config.snap.endpoints is True

    def test_from_json(self):
        """Test creating config from JSON string."""
        json_str = '''
        {
            "hit_test": {"line_tolerance": 6.0},
            "dimensions": {"precision": 1}
        }
        '''
        config = ProjectConfig.from_json(json_str)

        assert config.hit_test.line_tolerance == 6.0
        assert config.dimensions.precision == 1

    def test_unknown_keys_ignored(self):
        """Test that unknown sections and keys do not raise."""
        data = {
            'output': {'formats': ['svg']},
            'layout': {'gap': 12.0, 'columns': 3},
        }
        config = ProjectConfig.from_dict(data)

        assert config.layout.gap == 12.0
        assert not hasattr(config.layout, 'columns')

    def test_save_and_load(self):
        """Test saving and loading config file."""
        config = ProjectConfig()
        config.viewport.theme = 'black'
        config.layout.gap = 5.0

        with tempfile.NamedTemporaryFile(suffix='.json', delete=False) as f:
            temp_path = f.name

        try:
            config.save(temp_path)
            loaded = ProjectConfig.load(temp_path)

            assert loaded.viewport.theme == 'black'
            assert loaded.layout.gap == 5.0
        finally:
            Path(temp_path).unlink(missing_ok=True)


class TestFindConfigFile:
    """Tests for find_config_file function."""

    def test_explicit_config_found(self):
        """Test finding explicit config path."""
        with tempfile.NamedTemporaryFile(suffix='.json', delete=False) as f:
            temp_path = f.name
            f.write(b'{}')

        try:
            found = find_config_file(explicit_config=temp_path)
            assert found == Path(temp_path)
        finally:
            Path(temp_path).unlink(missing_ok=True)

    def test_config_next_to_drawing(self, tmp_path):
        """Test that .drawing.json beside the snapshot is found."""
        (tmp_path / ".drawing.json").write_text('{}', encoding='utf-8')
        drawing_path = tmp_path / "drawing.json"

        found = find_config_file(drawing_path=drawing_path)

        assert found == tmp_path / ".drawing.json"

    def test_no_config_returns_none_or_path(self):
        """Test lookup without hints."""
        found = find_config_file()
        # May or may not find one depending on environment
        assert found is None or isinstance(found, Path)


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_from_explicit_file(self):
        """Test loading from explicit config file."""
        with tempfile.NamedTemporaryFile(suffix='.json', delete=False, mode='w') as f:
            json.dump({'snap': {'screen_tolerance_px': 12}}, f)
            temp_path = f.name

        try:
            config = load_config(explicit_config=temp_path)
            assert config.snap.screen_tolerance_px == 12
        finally:
            Path(temp_path).unlink(missing_ok=True)

    def test_load_invalid_json_returns_defaults(self):
        """Test that invalid JSON returns defaults."""
        with tempfile.NamedTemporaryFile(suffix='.json', delete=False, mode='w') as f:
            f.write('not valid json {{{')
            temp_path = f.name

        try:
            config = load_config(explicit_config=temp_path)
            assert config.viewport.theme == 'blueprint'
        finally:
            Path(temp_path).unlink(missing_ok=True)


class TestMergeConfigs:
    """Tests for merge_configs function."""

    def test_override_non_default_values(self):
        """Test that non-default values override base."""
        base = ProjectConfig()
        override = ProjectConfig()
        override.viewport.theme = 'white'

        merged = merge_configs(base, override)

        assert merged.viewport.theme == 'white'

    def test_default_values_not_overridden(self):
        """Test that default values don't override base."""
        base = ProjectConfig()
        base.hit_test.line_tolerance = 4.0
        override = ProjectConfig()

        merged = merge_configs(base, override)

        assert merged.hit_test.line_tolerance == 4.0

    def test_base_not_mutated(self):
        """Test that merging returns a new object."""
        base = ProjectConfig()
        override = ProjectConfig()
        override.layout.gap = 20.0

        merge_configs(base, override)

        assert base.layout.gap == 8.0


class TestCreateSampleConfig:
    """Tests for create_sample_config function."""

    def test_creates_valid_json_with_comments(self, tmp_path):
        """Test that sample config is valid JSON with documentation comments."""
        path = tmp_path / ".drawing.json"
        create_sample_config(path)

        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        assert '_comment' in data
        for section in ('viewport', 'hit_test', 'snap', 'layout', 'dimensions'):
            assert '_comment' in data[section]

    def test_sample_loads_back(self, tmp_path):
        """Test that the sample file is accepted by ProjectConfig.load."""
        path = tmp_path / ".drawing.json"
        create_sample_config(path)

        assert ProjectConfig.load(path) == ProjectConfig()
