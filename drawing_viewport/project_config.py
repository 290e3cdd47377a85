"""
JSON-based project configuration for drawing_viewport.

Allows overriding default interaction and rendering values through:
1. .drawing.json file next to the drawing snapshot
2. .drawing.json file in the current directory
3. Explicit config file path via CLI

Configuration hierarchy (later overrides earlier):
1. Built-in defaults (config.py)
2. User config (~/.drawing.json)
3. Project config (./.drawing.json)
4. CLI arguments

Example .drawing.json:
{
    "viewport": {
        "theme": "white",
        "zoom_max": 8.0
    },
    "hit_test": {
        "line_tolerance": 6.0
    },
    "snap": {
        "nearest": false,
        "screen_tolerance_px": 12
    },
    "layout": {
        "gap": 10.0
    },
    "dimensions": {
        "precision": 1,
        "show_unit": true
    }
}
"""

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

from drawing_viewport.config import (
    ANNOTATION_HIT_TOLERANCE,
    DEFAULT_THEME,
    DIM_ARROW_SIZE,
    DIM_EXTENSION_GAP,
    DIM_EXTENSION_OVERSHOOT,
    DIM_OFFSET,
    DIM_PRECISION,
    DIM_TEXT_HEIGHT,
    DIM_UNIT,
    DIMENSION_HIT_TOLERANCE,
    DIMENSION_TEXT_HIT_RADIUS,
    ENDPOINT_SNAP_FACTOR,
    FRAME_OUTER_MARGIN_PX,
    LAYOUT_BIAS_X,
    LAYOUT_BIAS_Y,
    LAYOUT_GAP_MM,
    LINE_HIT_TOLERANCE,
    MIN_STROKE_PX,
    NEW_VIEW_AVAILABLE_FRACTION,
    NEW_VIEW_SPACING_MM,
    PAPER_FIT_FACTOR,
    SCREEN_SNAP_TOLERANCE_PX,
    VIEW_HIT_PADDING,
    ZOOM_IN_STEP,
    ZOOM_MAX,
    ZOOM_MIN,
    ZOOM_OUT_STEP,
)
from drawing_viewport.drawing.dimensions.geometry import ArrowStyle, DimensionConfig

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILENAME = ".drawing.json"


@dataclass
class ViewportConfig:
    """Canvas fitting, zoom limits and theme."""
    outer_margin_px: float = FRAME_OUTER_MARGIN_PX
    fit_factor: float = PAPER_FIT_FACTOR
    min_stroke_px: float = MIN_STROKE_PX
    zoom_min: float = ZOOM_MIN
    zoom_max: float = ZOOM_MAX
    zoom_in_step: float = ZOOM_IN_STEP
    zoom_out_step: float = ZOOM_OUT_STEP
    theme: str = DEFAULT_THEME


@dataclass
class HitTestConfig:
    """Hit-test tolerances in paper mm."""
    line_tolerance: float = LINE_HIT_TOLERANCE
    endpoint_factor: float = ENDPOINT_SNAP_FACTOR
    dimension_tolerance: float = DIMENSION_HIT_TOLERANCE
    text_radius: float = DIMENSION_TEXT_HIT_RADIUS
    annotation_tolerance: float = ANNOTATION_HIT_TOLERANCE
    view_padding: float = VIEW_HIT_PADDING


@dataclass
class SnapConfig:
    """Enabled snap types and screen-space tolerance."""
    endpoints: bool = True
    midpoints: bool = True
    intersections: bool = True
    nearest: bool = True
    screen_tolerance_px: float = SCREEN_SNAP_TOLERANCE_PX


@dataclass
class LayoutConfig:
    """View auto-layout parameters."""
    gap: float = LAYOUT_GAP_MM
    new_view_spacing: float = NEW_VIEW_SPACING_MM
    bias_x: float = LAYOUT_BIAS_X
    bias_y: float = LAYOUT_BIAS_Y
    available_fraction: float = NEW_VIEW_AVAILABLE_FRACTION


@dataclass
class DimensionDefaultsConfig:
    """Dimension style applied to new drawings."""
    offset: float = DIM_OFFSET
    extension_gap: float = DIM_EXTENSION_GAP
    extension_overshoot: float = DIM_EXTENSION_OVERSHOOT
    arrow_size: float = DIM_ARROW_SIZE
    arrow_style: str = "filled"
    text_height: float = DIM_TEXT_HEIGHT
    precision: Optional[int] = DIM_PRECISION
    unit: str = DIM_UNIT
    show_unit: bool = False

    def to_dimension_config(self) -> DimensionConfig:
        """Build the drawing dimension style from these defaults."""
        values = asdict(self)
        values['arrow_style'] = ArrowStyle(values['arrow_style'])
        return DimensionConfig(**values)


_SECTIONS = {
    'viewport': ViewportConfig,
    'hit_test': HitTestConfig,
    'snap': SnapConfig,
    'layout': LayoutConfig,
    'dimensions': DimensionDefaultsConfig,
}


@dataclass
class ProjectConfig:
    """Complete project configuration."""
    viewport: ViewportConfig = field(default_factory=ViewportConfig)
    hit_test: HitTestConfig = field(default_factory=HitTestConfig)
    snap: SnapConfig = field(default_factory=SnapConfig)
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    dimensions: DimensionDefaultsConfig = field(default_factory=DimensionDefaultsConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def save(self, path: Union[str, Path]) -> None:
        """Save configuration to JSON file.

        Args:
            path: Output file path
        """
        path = Path(path)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(self.to_json())
        logger.info("Configuration saved to %s", path)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProjectConfig':
        """Create configuration from dictionary.

        Unknown sections and keys are ignored.

        Args:
            data: Configuration dictionary

        Returns:
            ProjectConfig instance
        """
        config = cls()
        for name in _SECTIONS:
            if name not in data:
                continue
            section = getattr(config, name)
            for key, value in data[name].items():
                if hasattr(section, key):
                    setattr(section, key, value)
        return config

    @classmethod
    def from_json(cls, json_str: str) -> 'ProjectConfig':
        """Create configuration from JSON string."""
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'ProjectConfig':
        """Load configuration from JSON file.

        Args:
            path: Input file path

        Returns:
            ProjectConfig instance

        Raises:
            FileNotFoundError: If file doesn't exist
            json.JSONDecodeError: If file is not valid JSON
        """
        path = Path(path)
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        logger.info("Configuration loaded from %s", path)
        return cls.from_dict(data)


def find_config_file(
    drawing_path: Optional[Union[str, Path]] = None,
    explicit_config: Optional[Union[str, Path]] = None,
) -> Optional[Path]:
    """Find configuration file using search hierarchy.

    Search order:
    1. Explicit config path (if provided)
    2. .drawing.json in the drawing snapshot's directory
    3. .drawing.json in current working directory
    4. ~/.drawing.json in user's home directory

    Args:
        drawing_path: Path to the drawing snapshot being rendered
        explicit_config: Explicitly specified config path

    Returns:
        Path to config file if found, None otherwise
    """
    if explicit_config:
        explicit = Path(explicit_config)
        if explicit.exists():
            return explicit
        logger.warning("Explicit config not found: %s", explicit)

    if drawing_path:
        local_config = Path(drawing_path).parent / CONFIG_FILENAME
        if local_config.exists():
            return local_config

    cwd_config = Path.cwd() / CONFIG_FILENAME
    if cwd_config.exists():
        return cwd_config

    home_config = Path.home() / CONFIG_FILENAME
    if home_config.exists():
        return home_config

    return None


def load_config(
    drawing_path: Optional[Union[str, Path]] = None,
    explicit_config: Optional[Union[str, Path]] = None,
) -> ProjectConfig:
    """Load configuration with fallback to defaults.

    Args:
        drawing_path: Path to the drawing snapshot being rendered
        explicit_config: Explicitly specified config path

    Returns:
        ProjectConfig instance (defaults if no config file found)
    """
    config_path = find_config_file(drawing_path, explicit_config)

    if config_path:
        try:
            return ProjectConfig.load(config_path)
        except (json.JSONDecodeError, IOError) as e:
            logger.error("Failed to load config %s: %s", config_path, e)

    return ProjectConfig()


def merge_configs(base: ProjectConfig, override: ProjectConfig) -> ProjectConfig:
    """Merge two configurations, with override taking precedence.

    Only non-default values from override are applied.

    Args:
        base: Base configuration
        override: Override configuration

    Returns:
        Merged ProjectConfig
    """
    merged = ProjectConfig.from_dict(base.to_dict())

    for name, section_cls in _SECTIONS.items():
        defaults = section_cls()
        target = getattr(merged, name)
        source = getattr(override, name)
        for f in fields(section_cls):
            value = getattr(source, f.name)
            if value != getattr(defaults, f.name):
                setattr(target, f.name, value)

    return merged


def create_sample_config(path: Union[str, Path] = CONFIG_FILENAME) -> None:
    """Create a sample configuration file with documentation.

    Args:
        path: Output file path (default: .drawing.json)
    """
    sample: Dict[str, Any] = {
        "_comment": "Drawing viewport configuration",
        "_version": "1.0",
    }
    comments = {
        'viewport': "Canvas fit, zoom limits and theme (blueprint, white, black)",
        'hit_test': "Hit-test tolerances in paper mm",
        'snap': "Snap types and screen-space tolerance in px",
        'layout': "Auto-layout gap and new view spacing in paper mm",
        'dimensions': "Dimension style for new drawings",
    }
    defaults = ProjectConfig().to_dict()
    for name in _SECTIONS:
        sample[name] = {"_comment": comments[name], **defaults[name]}

    path = Path(path)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(sample, f, indent=2, ensure_ascii=False)

    logger.info("Sample configuration created: %s", path)
