__version__ = "0.1.0"

from .geometry import Color, Point, Rect, Size
from .styles import (
    BranchColoringType,
    BranchDecorationStyle,
    BranchDecorationType,
    CladeCollapseType,
    CladeStyle,
    CladeValueType,
    TreeStyle,
)
from .tree import Clade, Tree
from .parsers import TreeFormatError, parse_newick, read_newick, write_newick
from .drawing import (
    DrawingOptions,
    PdfDrawer,
    PngDrawer,
    PositionManager,
    SvgDrawer,
    TreeDrawer,
)
from .exporting import (
    ExportOptions,
    ExportType,
    PdfExporter,
    PngExporter,
    SvgExporter,
    create_exporter,
    export_tree,
)
