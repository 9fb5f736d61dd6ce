"""PDF rendering for home-watch checklist reports.

The report is drawn with a reportlab canvas on US letter pages. A
:class:`PageCursor` tracks the vertical position from the top of the page
and starts a new page whenever the next block would run into the bottom
margin. Missing or broken images (logo or photos) never abort the
document: the logo is skipped and a photo is replaced by a short notice.
"""
import io
import logging
from collections import defaultdict
from collections.abc import Callable
from pathlib import Path

from PIL import Image, ImageOps
from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas

from homewatch.core.config import Settings, settings
from homewatch.models import Checklist, ChecklistItem
from homewatch.reports.attachments import PhotoAttachment
from homewatch.reports.categories import (
    DEFAULT_CATEGORY,
    format_category_label,
    order_categories,
    status_label,
)
from homewatch.reports.context import ReportContext, build_report_context
from homewatch.reports.metadata import ChecklistMetadata

logger = logging.getLogger(__name__)

MARGIN = 50
LEADING = 1.2

BLACK = HexColor("#000000")
GRAY = HexColor("#555555")
RED = HexColor("#b91c1c")

LOGO_MAX_WIDTH = 220
LOGO_MAX_HEIGHT = 90
PHOTO_MAX_HEIGHT = 300
PHOTO_BLOCK_SPACE = 340
CATEGORY_BLOCK_SPACE = 80
ITEM_BLOCK_SPACE = 60

TEMPERATURE_LABELS = [
    ("garage", "Garage / Storage"),
    ("mainFloor", "Main Floor"),
    ("secondFloor", "2nd Floor / 2nd Zone"),
    ("thirdFloor", "3rd Floor"),
]


class PageCursor:
    """Top-down write position on a reportlab canvas.

    ``y`` is measured from the top edge of the page. ``on_new_page`` runs
    after every page break, which is how the photo gallery repeats its
    title on continuation pages.
    """

    def __init__(self, pdf: canvas.Canvas, pagesize=letter, margin: float = MARGIN):
        self.pdf = pdf
        self.page_width, self.page_height = pagesize
        self.margin = margin
        self.y = margin
        self.font_size = 12
        self.on_new_page: Callable[[], None] | None = None

    @property
    def content_width(self) -> float:
        return self.page_width - 2 * self.margin

    @property
    def bottom(self) -> float:
        return self.page_height - self.margin

    def new_page(self):
        self.pdf.showPage()
        self.y = self.margin
        if self.on_new_page is not None:
            self.on_new_page()

    def ensure_space(self, required: float):
        """Start a new page unless ``required`` points still fit."""
        if self.y + required > self.bottom:
            self.new_page()

    def move_down(self, lines: float = 1.0):
        self.y += lines * self.font_size * LEADING

    def text(
        self,
        value: str,
        size: float = 10,
        font: str = "Helvetica",
        color=BLACK,
        align: str = "left",
        indent: float = 0,
        underline: bool = False,
    ):
        """Draw wrapped text, breaking pages between lines as needed."""
        self.font_size = size
        width = self.content_width - indent
        leading = size * LEADING
        for paragraph in value.split("\n"):
            for line in simpleSplit(paragraph, font, size, width) or [""]:
                if self.y + leading > self.bottom:
                    self.new_page()
                line_width = self.pdf.stringWidth(line, font, size)
                if align == "center":
                    x = self.margin + (self.content_width - line_width) / 2
                else:
                    x = self.margin + indent
                baseline = self.page_height - self.y - size
                self.pdf.setFont(font, size)
                self.pdf.setFillColor(color)
                self.pdf.drawString(x, baseline, line)
                if underline and line:
                    self.pdf.setStrokeColor(color)
                    self.pdf.setLineWidth(0.5)
                    self.pdf.line(x, baseline - 1.5, x + line_width, baseline - 1.5)
                self.y += leading

    def image(self, data: bytes, max_width: float, max_height: float, padding: float = 16):
        """Draw an image centered, scaled down to fit; never scaled up.

        Raises OSError/ValueError when the bytes cannot be decoded.
        """
        picture = Image.open(io.BytesIO(data))
        picture.load()
        picture = ImageOps.exif_transpose(picture)
        if picture.mode not in ("RGB", "RGBA", "L"):
            picture = picture.convert("RGBA" if "transparency" in picture.info else "RGB")

        source_width, source_height = picture.size
        if source_width <= 0 or source_height <= 0:
            raise ValueError("Image has no size")

        box_width = min(self.content_width, max_width)
        scale = min(box_width / source_width, max_height / source_height, 1)
        target_width = source_width * scale
        target_height = source_height * scale

        # Embed at twice the drawn size at most to keep the PDF small
        if source_width > target_width * 2:
            picture.thumbnail((int(target_width * 2), int(target_height * 2)))

        x = self.margin + (self.content_width - target_width) / 2
        self.pdf.drawImage(
            ImageReader(picture),
            x,
            self.page_height - self.y - target_height,
            width=target_width,
            height=target_height,
            mask="auto",
        )
        self.y += target_height + padding


def _load_logo(path: Path) -> bytes | None:
    try:
        return path.read_bytes()
    except OSError as e:
        logger.warning(f"Checklist PDF logo could not be read from {path}: {e}")
        return None


def _group_items(items: list[ChecklistItem]) -> list[tuple[str, list[ChecklistItem]]]:
    grouped: dict[str, list[ChecklistItem]] = defaultdict(list)
    for item in items:
        grouped[item.category or DEFAULT_CATEGORY].append(item)
    return [
        (key, sorted(grouped[key], key=lambda item: item.item_text or ""))
        for key in order_categories(grouped)
    ]


def _group_photos(photos: list[PhotoAttachment]) -> list[tuple[str, dict[str, list[PhotoAttachment]]]]:
    by_category: dict[str, dict[str, list[PhotoAttachment]]] = defaultdict(lambda: defaultdict(list))
    for photo in photos:
        by_category[photo.category_key or DEFAULT_CATEGORY][photo.item_label or "Checklist Item"].append(photo)
    return [(key, by_category[key]) for key in order_categories(by_category)]


def _draw_header(cursor: PageCursor, config: Settings):
    logo = _load_logo(config.logo_path)
    if logo is not None:
        try:
            cursor.image(logo, LOGO_MAX_WIDTH, LOGO_MAX_HEIGHT, padding=18)
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            logger.warning(f"Checklist PDF failed to embed logo image: {e}")

    cursor.font_size = 12
    cursor.move_down(0.5)
    cursor.text(config.company_name, size=18, align="center")
    cursor.move_down(0.4)
    cursor.text(config.company_tagline, size=10, align="center")
    cursor.text(f"Phone: {config.company_phone}", size=10, align="center")
    cursor.text(f"Email: {config.company_email}", size=10, align="center")
    cursor.move_down(0.75)


def _draw_summary(cursor: PageCursor, context: ReportContext):
    cursor.text(f"Client Name: {context.client_name or 'Not specified'}", size=12)
    cursor.text(f"Address: {context.address or 'Not provided'}", size=12)
    cursor.text(f"Date of Arrival: {context.formatted_date or 'Not recorded'}", size=12)
    cursor.text(f"Inspector: {context.inspector or 'Not recorded'}", size=12)
    if context.client_phone:
        cursor.text(f"Client Phone: {context.client_phone}", size=12)
    if context.client_email:
        cursor.text(f"Client Email: {context.client_email}", size=12)
    cursor.move_down()


def _draw_checklist(cursor: PageCursor, items: list[ChecklistItem]):
    cursor.text("Exterior / Interior Checklist", size=11)
    cursor.move_down(0.25)
    cursor.text(
        "Visual review and ensure mechanicals are in working order. "
        "Status values: DONE, ISSUE, N/A, UNCHECKED.",
        size=9,
    )
    cursor.move_down()

    for category_key, category_items in _group_items(items):
        cursor.text(format_category_label(category_key), size=12, underline=True)
        cursor.move_down(0.25)
        for item in category_items:
            cursor.text(f"[{status_label(item.status)}] {item.item_text}", size=10)
            if item.notes:
                cursor.text(f"Notes: {item.notes}", size=9, color=GRAY, indent=12)
            cursor.move_down(0.2)
        cursor.move_down(0.5)


def _draw_temperatures(cursor: PageCursor, context: ReportContext):
    if not context.has_temperatures:
        return
    cursor.text("Interior Temperature Levels", size=12, underline=True)
    cursor.move_down(0.25)
    for zone, label in TEMPERATURE_LABELS:
        cursor.text(f"{label}: {context.temperatures.get(zone) or 'Not recorded'}", size=10)
    cursor.move_down(0.75)


def _draw_comments(cursor: PageCursor, context: ReportContext, config: Settings):
    cursor.text("Comments and Photos", size=12, underline=True)
    cursor.move_down(0.15)
    cursor.text(
        f"{config.company_tagline} - Phone: {config.company_phone} - Email: {config.company_email}",
        size=9,
        color=GRAY,
    )
    cursor.move_down(0.25)
    cursor.text(context.comments or "None provided.", size=10)


def _draw_gallery(cursor: PageCursor, photos: list[PhotoAttachment]):
    def gallery_title():
        cursor.text("Inspection Photos", size=16, align="center")
        cursor.move_down(0.75)

    cursor.on_new_page = gallery_title
    cursor.new_page()

    for category_key, photos_by_item in _group_photos(photos):
        cursor.ensure_space(CATEGORY_BLOCK_SPACE)
        first = next(iter(photos_by_item.values()))[0]
        cursor.text(first.category_label or format_category_label(category_key), size=13, underline=True)
        cursor.move_down(0.4)

        for item_label, assets in photos_by_item.items():
            cursor.ensure_space(ITEM_BLOCK_SPACE)
            cursor.text(item_label, size=11)
            cursor.move_down(0.25)

            for asset in assets:
                cursor.ensure_space(PHOTO_BLOCK_SPACE)
                try:
                    cursor.image(asset.content, cursor.content_width, PHOTO_MAX_HEIGHT, padding=18)
                except (OSError, ValueError, Image.DecompressionBombError) as e:
                    logger.warning(f"Checklist PDF failed to embed photo {asset.filename}: {e}")
                    cursor.text("Unable to display this photo in the PDF.", size=9, color=RED)
                    cursor.move_down(0.5)
            cursor.move_down(0.35)
        cursor.move_down(0.65)

    cursor.on_new_page = None


def render_checklist_pdf(
    checklist: Checklist,
    meta: ChecklistMetadata,
    photos: list[PhotoAttachment] | None = None,
    config: Settings = settings,
) -> bytes:
    """Render the full visit report and return the PDF bytes.

    ``photos`` should only contain image attachments; they are embedded in
    the gallery grouped by category and item.
    """
    context = build_report_context(checklist, meta)
    buffer = io.BytesIO()
    pdf = canvas.Canvas(
        buffer,
        pagesize=letter,
        pageCompression=1 if config.pdf_page_compression else 0,
    )
    pdf.setTitle(f"Home Watch Checklist - {context.client_name or 'Client'}")
    pdf.setAuthor(config.company_name)

    cursor = PageCursor(pdf)
    _draw_header(cursor, config)
    _draw_summary(cursor, context)
    _draw_checklist(cursor, list(checklist.items))
    _draw_temperatures(cursor, context)
    _draw_comments(cursor, context, config)
    if photos:
        _draw_gallery(cursor, photos)

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()
