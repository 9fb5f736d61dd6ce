"""Tests for the checklist PDF renderer."""

from sqlmodel import Session

from homewatch.models import Checklist, ChecklistItem
from homewatch.reports import metadata
from homewatch.reports.attachments import PhotoAttachment
from homewatch.reports.renderer import render_checklist_pdf


def photo(content: bytes, filename: str = "leak.png", category: str = "interior") -> PhotoAttachment:
    return PhotoAttachment(
        filename=filename,
        content=content,
        content_type="image/png",
        category_key=category,
        category_label=category.title(),
        item_label="Check under sinks for leaks",
    )


class TestRenderChecklist:
    """Tests for render_checklist_pdf."""

    def test_renders_pdf_document(self, sample_checklist: Checklist, report_settings):
        pdf = render_checklist_pdf(sample_checklist, metadata.decode(sample_checklist.notes), config=report_settings)
        assert pdf.startswith(b"%PDF")
        assert pdf.rstrip().endswith(b"%%EOF")

    def test_summary_and_items(self, sample_checklist: Checklist, report_settings):
        """Test that the header, summary and each item line are drawn."""
        pdf = render_checklist_pdf(sample_checklist, metadata.decode(sample_checklist.notes), config=report_settings)

        assert b"Client Name: Dana Whitfield" in pdf
        assert b"Date of Arrival: 3/7/2025" in pdf
        assert b"Inspector: Sam Ortiz" in pdf
        assert b"[DONE] Check roof and gutters" in pdf
        assert b"[ISSUE] Check under sinks for leaks" in pdf
        assert b"Notes: Slow drip under kitchen sink" in pdf
        assert b"Garage / Storage: 82" in pdf
        assert b"3rd Floor: Not recorded" in pdf
        assert b"Everything secure." in pdf

    def test_category_order(self, session: Session, sample_checklist: Checklist, report_settings):
        """Test that known categories come first and unknown ones after."""
        session.add(ChecklistItem(
            checklist_id=sample_checklist.id, category="dock_boat", item_text="Check boat lift", status="na"
        ))
        session.commit()
        session.refresh(sample_checklist)

        pdf = render_checklist_pdf(sample_checklist, metadata.decode(sample_checklist.notes), config=report_settings)

        exterior = pdf.index(b"[DONE] Check roof and gutters")
        interior = pdf.index(b"[ISSUE] Check under sinks for leaks")
        custom = pdf.index(b"Dock Boat")
        assert exterior < interior < custom
        assert b"[N/A] Check boat lift" in pdf

    def test_known_categories_reordered(self, session: Session, report_settings):
        """Test that known categories follow canonical order and unknown ones trail."""
        checklist = Checklist()
        session.add(checklist)
        session.flush()
        for category, label in [
            ("security", "Arm alarm panel"),
            ("exterior", "Walk the perimeter"),
            ("unknown_cat", "Inspect boat dock"),
            ("interior", "Run all faucets"),
        ]:
            session.add(ChecklistItem(checklist_id=checklist.id, category=category, item_text=label, status="done"))
        session.commit()
        session.refresh(checklist)

        pdf = render_checklist_pdf(checklist, metadata.decode(checklist.notes), config=report_settings)

        positions = [
            pdf.index(b"[DONE] Walk the perimeter"),
            pdf.index(b"[DONE] Run all faucets"),
            pdf.index(b"[DONE] Arm alarm panel"),
            pdf.index(b"[DONE] Inspect boat dock"),
        ]
        assert positions == sorted(positions)
        assert pdf.index(b"Security") < pdf.index(b"Unknown Cat")

    def test_empty_metadata_uses_placeholders(self, session: Session, report_settings):
        checklist = Checklist(notes="{broken")
        session.add(checklist)
        session.commit()
        session.refresh(checklist)

        pdf = render_checklist_pdf(checklist, metadata.decode(checklist.notes), config=report_settings)

        assert b"Client Name: Not specified" in pdf
        assert b"Address: Not provided" in pdf
        assert b"None provided." in pdf
        assert b"Interior Temperature Levels" not in pdf

    def test_gallery_embeds_photos(self, sample_checklist: Checklist, report_settings, png_bytes):
        pdf = render_checklist_pdf(
            sample_checklist, metadata.decode(sample_checklist.notes), [photo(png_bytes)], config=report_settings
        )
        assert b"Inspection Photos" in pdf
        assert b"/Subtype /Image" in pdf
        assert b"Unable to display this photo in the PDF." not in pdf

    def test_broken_photo_replaced_by_notice(self, sample_checklist: Checklist, report_settings):
        """Test that an undecodable image does not abort rendering."""
        pdf = render_checklist_pdf(
            sample_checklist,
            metadata.decode(sample_checklist.notes),
            [photo(b"definitely not an image", filename="broken.png")],
            config=report_settings,
        )
        assert pdf.startswith(b"%PDF")
        assert b"Unable to display this photo in the PDF." in pdf

    def test_logo_embedded_when_present(self, sample_checklist: Checklist, report_settings, png_bytes, tmp_path):
        logo = tmp_path / "logo.png"
        logo.write_bytes(png_bytes)
        config = report_settings.model_copy(update={"logo_path": logo})

        pdf = render_checklist_pdf(sample_checklist, metadata.decode(sample_checklist.notes), config=config)

        assert b"/Subtype /Image" in pdf
        assert b"Basic Home Watch Checklist" in pdf

    def test_missing_logo_is_skipped(self, sample_checklist: Checklist, report_settings):
        pdf = render_checklist_pdf(sample_checklist, metadata.decode(sample_checklist.notes), config=report_settings)
        assert b"/Subtype /Image" not in pdf
        assert b"Basic Home Watch Checklist" in pdf
