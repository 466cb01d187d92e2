import io

from PIL import Image

from logic.image_utils import bytes_to_image, fit_preview, load_preview

ORIENTATION = 0x0112


def _jpeg(size, orientation=None):
    buf = io.BytesIO()
    img = Image.new("RGB", size, "white")
    if orientation is None:
        img.save(buf, "JPEG")
    else:
        exif = Image.Exif()
        exif[ORIENTATION] = orientation
        img.save(buf, "JPEG", exif=exif.tobytes())
    return buf.getvalue()


def test_decodes_to_rgba():
    img = bytes_to_image(_jpeg((20, 10)))
    assert img.mode == "RGBA"
    assert img.size == (20, 10)


def test_exif_rotation_is_applied():
    # orientation 6: stored landscape, shown portrait
    img = bytes_to_image(_jpeg((20, 10), orientation=6))
    assert img.size == (10, 20)


def test_fit_preview_scales_down_keeping_ratio():
    img = Image.new("RGBA", (400, 200))
    assert fit_preview(img, (100, 100)).size == (100, 50)


def test_fit_preview_never_scales_up():
    img = Image.new("RGBA", (50, 40))
    assert fit_preview(img, (1000, 800)) is img


def test_unreadable_format_gives_no_preview():
    svg = b'<svg xmlns="http://www.w3.org/2000/svg" width="10" height="10"><rect width="10" height="10"/></svg>'
    assert load_preview(svg) is None
    assert load_preview(b"") is None


def test_readable_format_gives_preview():
    assert load_preview(_jpeg((8, 8))).size == (8, 8)
