from __future__ import annotations

import html

from .exif import ShotExif


def has_exif_data(exif: ShotExif | None) -> bool:
    return exif is not None and any(v is not None for v in exif.as_dict().values())


def _camera_line(exif: ShotExif) -> str | None:
    if exif.make and exif.model:
        # many cameras repeat the make in the model ("Canon" / "Canon EOS R5")
        if exif.model.lower().startswith(exif.make.lower()):
            return exif.model
        return f"{exif.make} {exif.model}"
    return exif.model or exif.make


def exposure_line(exif: ShotExif) -> str | None:
    """'1/200s • ƒ/2.80 • ISO 100 • 50mm', with missing parts left out."""
    parts: list[str] = []
    if exif.shutter_speed:
        parts.append(f"{exif.shutter_speed}s")
    if exif.aperture:
        parts.append(f"ƒ/{exif.aperture}")
    if exif.iso is not None:
        parts.append(f"ISO {exif.iso}")
    if exif.focal_length is not None:
        parts.append(f"{exif.focal_length}mm")
    return " • ".join(parts) or None


def exif_summary_items(exif: ShotExif) -> list[tuple[str | None, str]]:
    """
    (label, text) pairs in display order. The exposure line has no label.
    """
    items: list[tuple[str | None, str]] = []
    if exif.image_description:
        items.append(("Description", exif.image_description))
    camera = _camera_line(exif)
    if camera:
        items.append(("Camera", camera))
    if exif.lens_model:
        items.append(("Lens", exif.lens_model))
    if exif.date_time:
        captured = exif.captured_at
        items.append(("Date", captured.strftime("%Y-%m-%d %H:%M:%S") if captured else exif.date_time))
    exposure = exposure_line(exif)
    if exposure:
        items.append((None, exposure))
    if exif.flash:
        items.append(("Flash", exif.flash))
    if exif.exposure_mode:
        items.append(("Mode", exif.exposure_mode))
    if exif.user_comment:
        items.append(("Comment", exif.user_comment))
    return items


def exif_summary_lines(exif: ShotExif) -> list[str]:
    return [f"{label}: {text}" if label else text for label, text in exif_summary_items(exif)]


def exif_details_html(exif: ShotExif | None) -> str:
    """
    Caption panel for a gallery tile: a <ul class="exif-details"> fragment,
    or "" when there is nothing to show. All values are HTML-escaped.
    """
    if not has_exif_data(exif):
        return ""
    lis: list[str] = []
    for label, text in exif_summary_items(exif):
        if label in ("Description", "Comment"):
            lis.append(f"<li><strong>{label}:</strong> {html.escape(text)}</li>")
        elif label:
            lis.append(f"<li>{label}: {html.escape(text)}</li>")
        else:
            lis.append(f"<li>{html.escape(text)}</li>")
    if not lis:
        return ""
    return "<ul class=\"exif-details\">" + "".join(lis) + "</ul>"
