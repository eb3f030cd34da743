from PIL import Image

from imagery.background import add_background


def test_opaque_image_is_unchanged():
    img = Image.new("RGBA", (4, 3), (10, 20, 30, 255))
    out = add_background(img, (200, 200, 200, 255))
    assert out.size == img.size
    assert out.tobytes() == img.tobytes()


def test_transparent_image_takes_background():
    bg = (1, 2, 3, 255)
    img = Image.new("RGBA", (2, 2), (90, 90, 90, 0))
    out = add_background(img, bg)
    assert set(out.getdata()) == {bg}


def test_half_transparent_pixel_blends():
    img = Image.new("RGBA", (1, 1), (255, 0, 0, 128))
    out = add_background(img, (255, 255, 255, 255))
    r, g, b, a = out.getpixel((0, 0))
    assert a == 255
    assert r == 255
    assert 0 < g < 255
    assert g == b


def test_rgb_input_is_accepted():
    img = Image.new("RGB", (3, 1), (5, 6, 7))
    out = add_background(img, "black")
    assert out.mode == "RGBA"
    assert out.getpixel((2, 0)) == (5, 6, 7, 255)