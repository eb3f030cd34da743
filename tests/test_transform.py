import pytest
from PIL import Image

from imagery.transform import (
    MultiTransformation,
    NullTransformation,
    Transformation,
    new_multi_transformation,
    new_multi_transformation_with_uris,
    new_null_transformation,
    new_transformation,
    register_transformation,
)


class _Tint(Transformation):
    def __init__(self, colour):
        self.colour = colour

    def transform(self, im):
        return Image.new("RGBA", im.size, self.colour)


class _Broken(Transformation):
    def transform(self, im):
        raise ValueError("broken")


class _Shrink(Transformation):
    def transform(self, im):
        return im.resize((im.width // 2, im.height // 2))


def _image():
    return Image.new("RGBA", (8, 6), (10, 20, 30, 255))


def test_new_transformation():
    tr = new_transformation("null://")
    assert isinstance(tr, NullTransformation)
    with pytest.raises(ValueError):
        new_transformation("fail://")


def test_null_transformation_returns_input():
    im = _image()
    tr = new_transformation("null://")
    assert tr.transform(im) is im
    assert new_null_transformation("null://").transform(im) is im


def test_multi_transformation_with_null_uris():
    im = _image()
    tr = new_multi_transformation_with_uris("null://", "null://")
    assert isinstance(tr, MultiTransformation)
    assert tr.transform(im) is im


def test_multi_transformation_with_bad_uri():
    with pytest.raises(ValueError, match="fail://"):
        new_multi_transformation_with_uris("null://", "fail://")


def test_multi_transformation_applies_in_order():
    im = _image()
    red = (255, 0, 0, 255)
    tr = new_multi_transformation(_Tint(red), _Shrink())
    out = tr.transform(im)
    assert out.size == (4, 3)
    assert out.getpixel((0, 0)) == red


def test_multi_transformation_reports_offset():
    tr = new_multi_transformation(NullTransformation(), _Broken())
    with pytest.raises(RuntimeError, match="offset 1"):
        tr.transform(_image())


def test_registered_transformation_is_created_from_uri():
    received = []

    def factory(uri):
        received.append(uri)
        return _Shrink()

    register_transformation("shrinktest", factory)
    tr = new_transformation("shrinktest://?x=1")
    assert received == ["shrinktest://?x=1"]
    assert tr.transform(_image()).size == (4, 3)


def test_duplicate_registration_fails():
    register_transformation("duptest", new_null_transformation)
    with pytest.raises(ValueError):
        register_transformation("duptest", new_null_transformation)


def test_transformation_is_abstract():
    with pytest.raises(TypeError):
        Transformation()