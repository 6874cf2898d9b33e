"""
Raster export of organization charts.

This module renders a chart to a Pillow image from the same world coordinates
the canvas uses:

- framed on the content bounding box plus a margin (a static document of the
  whole chart), or
- through a Viewport, reproducing exactly what is on screen.

The ChartExporter wraps the renderer with file output.
"""

import os
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

from PIL import Image, ImageColor, ImageDraw, ImageFont

from .models import DEFAULT_COLOR, NODE_HEIGHT, NODE_WIDTH, Rect, Size
from .viewport import Viewport

EXPORT_MARGIN = 50


class ChartRenderer:
    """Renders blocks and connections with Pillow."""

    def __init__(
        self,
        scale: float = 1,
        margin: float = EXPORT_MARGIN,
        font_size: int = 12,
        font_path: Optional[str] = None,
    ):
        """
        Initialize the renderer.

        Args:
            scale: Resolution multiplier for framed output.
            margin: World-unit margin around the content in framed output.
            font_size: Label font size in points (before scaling).
            font_path: Optional TrueType font file.
        """
        self.scale = scale
        self.margin = margin
        self.font_size = font_size
        self.font_path = font_path

        # Colors
        self.bg_color = (255, 255, 255)
        self.box_outline = (120, 120, 120)
        self.selected_outline = (33, 150, 243)
        self.text_color = (0, 0, 0)
        self.line_color = (33, 150, 243)

        self._fonts: Dict[int, ImageFont.ImageFont] = {}

    def _get_font(self, size: int):
        """Get a font for rendering labels, cached per pixel size."""
        if size in self._fonts:
            return self._fonts[size]

        font_options = [
            "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
            "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
            "/usr/share/fonts/truetype/freefont/FreeSans.ttf",
        ]
        if self.font_path:
            font_options.insert(0, self.font_path)

        font = None
        for path in font_options:
            if os.path.exists(path):
                try:
                    font = ImageFont.truetype(path, size)
                    break
                except OSError:
                    continue
        if font is None:
            font = ImageFont.load_default()

        self._fonts[size] = font
        return font

    @staticmethod
    def _fill_color(color: str) -> Tuple[int, int, int]:
        try:
            return ImageColor.getrgb(color)[:3]
        except ValueError:
            return ImageColor.getrgb(DEFAULT_COLOR)[:3]

    def content_bounds(self, model, sizes=None) -> Optional[Rect]:
        """World bounding box of every block, or None for an empty chart."""
        nodes = model.nodes
        if not nodes:
            return None

        def size_of(node_id) -> Size:
            if sizes is None:
                return Size(NODE_WIDTH, NODE_HEIGHT)
            return sizes.get(node_id)

        min_x = min(n.x for n in nodes)
        min_y = min(n.y for n in nodes)
        max_x = max(n.x + size_of(n.id).width for n in nodes)
        max_y = max(n.y + size_of(n.id).height for n in nodes)
        return Rect(min_x, min_y, max_x - min_x, max_y - min_y)

    def render(
        self,
        model,
        sizes=None,
        viewport: Optional[Viewport] = None,
        selected: Iterable[int] = (),
    ) -> Image.Image:
        """
        Render the chart.

        Args:
            model: GraphModel to draw.
            sizes: Optional SizeCache; nominal 200x100 when omitted.
            viewport: When given, reproduce the on-screen projection at the
                      viewport's size, offset and zoom.
            selected: Block ids to outline as selected.

        Returns:
            A new RGB image.
        """
        if viewport is not None:
            zoom = viewport.zoom
            width, height = int(viewport.width), int(viewport.height)

            def project(x, y):
                return x * zoom + viewport.offset_x, y * zoom + viewport.offset_y

        else:
            bounds = self.content_bounds(model, sizes)
            if bounds is None:
                return Image.new("RGB", (200, 100), self.bg_color)
            zoom = self.scale
            left = bounds.x - self.margin
            top = bounds.y - self.margin
            width = int((bounds.width + 2 * self.margin) * zoom)
            height = int((bounds.height + 2 * self.margin) * zoom)

            def project(x, y):
                return (x - left) * zoom, (y - top) * zoom

        img = Image.new("RGB", (max(width, 1), max(height, 1)), self.bg_color)
        draw = ImageDraw.Draw(img)

        boxes: Dict[int, Tuple[float, float, float, float]] = {}
        for node in model.nodes:
            size = sizes.get(node.id) if sizes is not None else Size(NODE_WIDTH, NODE_HEIGHT)
            x0, y0 = project(node.x, node.y)
            x1, y1 = project(node.x + size.width, node.y + size.height)
            boxes[node.id] = (x0, y0, x1, y1)

        self._draw_connections(draw, model, boxes, zoom)

        selected = set(selected)
        font = self._get_font(max(1, int(round(self.font_size * zoom))))
        for node in model.nodes:
            self._draw_box(draw, node, boxes[node.id], node.id in selected, font, zoom)

        return img

    def _draw_connections(self, draw: ImageDraw.ImageDraw, model, boxes, zoom) -> None:
        """Straight parent-bottom-center to child-top-center lines with end dots."""
        line_width = max(1, int(round(2 * zoom)))
        radius = 6 * zoom
        for edge in model.edges:
            if edge.parent_id not in boxes or edge.child_id not in boxes:
                continue
            px0, _, px1, py1 = boxes[edge.parent_id]
            cx0, cy0, cx1, _ = boxes[edge.child_id]
            start = ((px0 + px1) / 2, py1)
            end = ((cx0 + cx1) / 2, cy0)
            draw.line([start, end], fill=self.line_color, width=line_width)
            for x, y in (start, end):
                draw.ellipse(
                    [x - radius, y - radius, x + radius, y + radius],
                    fill=self.line_color,
                )

    def _draw_box(self, draw, node, box, is_selected: bool, font, zoom) -> None:
        """Draw a block with its label lines centered."""
        outline = self.selected_outline if is_selected else self.box_outline
        draw.rectangle(
            list(box),
            fill=self._fill_color(node.color),
            outline=outline,
            width=max(1, int(round((2 if is_selected else 1) * zoom))),
        )

        lines = node.label_lines()
        if not lines:
            return

        x0, y0, x1, y1 = box
        line_spacing = 4 * zoom
        dims = []
        total_height = 0
        for i, line in enumerate(lines):
            bbox = draw.textbbox((0, 0), line, font=font)
            dims.append((bbox[2] - bbox[0], bbox[3] - bbox[1]))
            total_height += bbox[3] - bbox[1]
            if i > 0:
                total_height += line_spacing

        current_y = y0 + ((y1 - y0) - total_height) / 2
        for line, (line_w, line_h) in zip(lines, dims):
            text_x = x0 + ((x1 - x0) - line_w) / 2
            draw.text((text_x, current_y), line, fill=self.text_color, font=font)
            current_y += line_h + line_spacing


class ChartExporter:
    """
    Exports charts to image files.

    Attributes:
        renderer: ChartRenderer used for drawing.
    """

    def __init__(self, renderer: Optional[ChartRenderer] = None):
        self.renderer = renderer or ChartRenderer()

    def save_png(
        self,
        session,
        filename: str,
        use_viewport: bool = False,
        include_selection: bool = False,
    ) -> Path:
        """
        Save the session's chart as a PNG.

        Args:
            session: EditorSession to export.
            filename: Output path.
            use_viewport: Reproduce the on-screen projection instead of
                          framing the whole chart.
            include_selection: Outline the currently selected blocks.

        Returns:
            Path of the written file.
        """
        img = self.renderer.render(
            session.model,
            session.sizes,
            viewport=session.viewport if use_viewport else None,
            selected=session.selection.node_ids if include_selection else (),
        )
        output_path = Path(filename)
        img.save(output_path, "PNG")
        return output_path


def render_to_png(session, output_path: str = "chart.png", **kwargs) -> Path:
    """
    Convenience function to render a session's chart to PNG.

    Args:
        session: EditorSession to export.
        output_path: Path to save the PNG file.
        **kwargs: Additional parameters for ChartRenderer.

    Returns:
        Path to the saved PNG file.
    """
    return ChartExporter(ChartRenderer(**kwargs)).save_png(session, output_path)
