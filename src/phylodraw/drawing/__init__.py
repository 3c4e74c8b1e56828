from .base import DrawingOptions, TreeDrawer, select_show_value
from .fonts import FontManager, measure_text
from .pdf import PdfDrawer
from .png import PngDrawer
from .positions import PositionManager
from .svg import SvgDrawer
