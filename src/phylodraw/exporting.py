from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .drawing import DrawingOptions, PdfDrawer, PngDrawer, SvgDrawer
from .drawing.positions import TextMeasurer
from .tree import Tree

logger = logging.getLogger(__name__)


class ExportType(Enum):
    SVG = "svg"
    PDF = "pdf"
    PNG = "png"


@dataclass
class ExportOptions(DrawingOptions):
    """Drawing options plus the raster background (transparent when None)."""

    background: str | None = None


def export_type_from_path(path: str | Path) -> ExportType:
    suffix = Path(path).suffix.lower().lstrip(".")
    try:
        return ExportType(suffix)
    except ValueError:
        raise ValueError(f"Cannot infer the export format from {str(path)!r}; use .svg, .pdf or .png") from None


def _write(data: bytes, destination) -> None:
    if hasattr(destination, "write"):
        destination.write(data)
        return
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


class Exporter:
    """Draws a tree with one backend and writes the result.

    ``destination`` is a path or a binary stream.
    """

    export_type: ExportType

    def __init__(self, text_measurer: TextMeasurer | None = None):
        self.text_measurer = text_measurer

    def render(self, tree: Tree, options: ExportOptions) -> bytes:
        raise NotImplementedError

    def export(self, tree: Tree, destination, options: ExportOptions | None = None) -> None:
        if tree is None:
            raise TypeError("tree must not be None")
        if destination is None:
            raise TypeError("destination must not be None")
        options = options if options is not None else ExportOptions()
        data = self.render(tree, options)
        _write(data, destination)
        logger.debug("Exported %s (%d bytes)", self.export_type.name, len(data))


class SvgExporter(Exporter):
    export_type = ExportType.SVG

    def render(self, tree: Tree, options: ExportOptions) -> bytes:
        drawer = SvgDrawer(self.text_measurer)
        drawer.draw(tree, options)
        return drawer.as_svg().encode("utf-8")


class PdfExporter(Exporter):
    export_type = ExportType.PDF

    def render(self, tree: Tree, options: ExportOptions) -> bytes:
        drawer = PdfDrawer(self.text_measurer)
        drawer.draw(tree, options)
        return drawer.as_pdf()


class PngExporter(Exporter):
    export_type = ExportType.PNG

    def render(self, tree: Tree, options: ExportOptions) -> bytes:
        if options.background is not None:
            drawer = PngDrawer(self.text_measurer, background=options.background)
        else:
            drawer = PngDrawer(self.text_measurer)
        drawer.draw(tree, options)
        return drawer.as_png()


_EXPORTERS = {
    ExportType.SVG: SvgExporter,
    ExportType.PDF: PdfExporter,
    ExportType.PNG: PngExporter,
}


def create_exporter(export_type: ExportType, text_measurer: TextMeasurer | None = None) -> Exporter:
    try:
        return _EXPORTERS[export_type](text_measurer)
    except KeyError:
        raise ValueError(f"Unsupported export type: {export_type!r}") from None


def export_tree(
    tree: Tree,
    destination,
    export_type: ExportType | None = None,
    options: ExportOptions | None = None,
) -> None:
    """Export ``tree``; the format defaults to the extension of a path destination."""
    if export_type is None:
        if hasattr(destination, "write"):
            raise ValueError("export_type is required when writing to a stream")
        export_type = export_type_from_path(destination)
    create_exporter(export_type).export(tree, destination, options)
