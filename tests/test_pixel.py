import pytest
from PIL import Image

from imagery.pixel import (
    ReplacePixelKey,
    make_multi_pixel_func,
    make_replace_pixel_func,
    make_transparent_pixel_func,
    replace_pixels,
)

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)


def _image() -> Image.Image:
    img = Image.new("RGBA", (2, 2))
    img.putdata([RED, GREEN, BLUE, RED])
    return img


def test_replace_matching_colour():
    func = make_replace_pixel_func(ReplacePixelKey(candidates=[RED], replacement=BLUE))
    out = replace_pixels(_image(), func)
    assert list(out.getdata()) == [BLUE, GREEN, BLUE, BLUE]


def test_replace_first_key_wins():
    func = make_replace_pixel_func(
        ReplacePixelKey(candidates=[GREEN, RED], replacement=BLUE),
        ReplacePixelKey(candidates=[RED], replacement=GREEN),
    )
    assert func(0, 0, RED) == BLUE
    assert func(0, 0, (9, 9, 9, 255)) == (9, 9, 9, 255)


def test_replace_treats_transparent_colours_alike():
    func = make_replace_pixel_func(
        ReplacePixelKey(candidates=[(10, 20, 30, 0)], replacement=RED)
    )
    assert func(0, 0, (200, 100, 50, 0)) == RED


def test_transparent_func_clears_alpha():
    func = make_transparent_pixel_func(RED)
    out = replace_pixels(_image(), func)
    pixels = list(out.getdata())
    assert pixels[0][3] == 0
    assert pixels[0][0] == 255
    assert pixels[1] == GREEN
    assert pixels[2] == BLUE


def test_transparent_func_ignores_alpha_of_input():
    func = make_transparent_pixel_func((0, 255, 0, 255))
    result = func(1, 1, GREEN)
    assert result[3] == 0
    assert func(1, 1, BLUE) == BLUE


def test_multi_func_applies_in_order():
    to_green = make_replace_pixel_func(ReplacePixelKey([RED], GREEN))
    to_blue = make_replace_pixel_func(ReplacePixelKey([GREEN], BLUE))
    func = make_multi_pixel_func(to_green, to_blue)
    out = replace_pixels(_image(), func)
    assert set(out.getdata()) == {BLUE}


def test_callback_receives_coordinates():
    seen = []

    def record(x, y, colour):
        seen.append((x, y))
        return colour

    img = _image()
    out = replace_pixels(img, record)
    assert sorted(seen) == [(0, 0), (0, 1), (1, 0), (1, 1)]
    assert out.tobytes() == img.tobytes()


def test_callback_error_propagates():
    def fail(x, y, colour):
        raise ValueError("bad pixel")

    with pytest.raises(ValueError, match="bad pixel"):
        replace_pixels(_image(), make_multi_pixel_func(fail))