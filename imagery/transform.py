"""Image transformations created from URIs.

A transformation is looked up by the scheme of its URI, e.g. ``null://``,
among the constructors registered with :func:`register_transformation`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable
from urllib.parse import urlsplit

from PIL import Image


class Transformation(ABC):
    """Something that turns one image into another."""

    @abstractmethod
    def transform(self, im: Image.Image) -> Image.Image:
        """Apply the transformation to *im* and return the result."""


InitializeTransformationFunc = Callable[[str], Transformation]

_transformations: dict[str, InitializeTransformationFunc] = {}


def register_transformation(name: str, func: InitializeTransformationFunc) -> None:
    """Register *func* as the constructor for URIs with scheme *name*."""
    if func is None:
        raise ValueError(f"Missing constructor for transformation {name}")
    if name in _transformations:
        raise ValueError(f"Transformation {name} is already registered")
    _transformations[name] = func


def new_transformation(uri: str) -> Transformation:
    """Create the transformation whose scheme matches the scheme of *uri*."""
    try:
        scheme = urlsplit(uri).scheme
    except ValueError as err:
        raise ValueError(f"Failed to parse URI, {err}") from err

    func = _transformations.get(scheme)
    if func is None:
        raise ValueError(f"Undefined transformation for {scheme}")
    return func(uri)


class MultiTransformation(Transformation):
    """Applies several transformations one after another."""

    def __init__(self, transforms):
        self.transforms = list(transforms)

    def transform(self, im: Image.Image) -> Image.Image:
        for idx, tr in enumerate(self.transforms):
            try:
                im = tr.transform(im)
            except Exception as err:
                raise RuntimeError(
                    f"Failed to apply transform at offset {idx}, {err}"
                ) from err
        return im


def new_multi_transformation_with_uris(*uris: str) -> MultiTransformation:
    """Create a transformation applying those named by *uris*, in order."""
    transforms = []
    for uri in uris:
        try:
            transforms.append(new_transformation(uri))
        except Exception as err:
            raise ValueError(f"Failed to create transformation for {uri}, {err}") from err
    return new_multi_transformation(*transforms)


def new_multi_transformation(*transformations: Transformation) -> MultiTransformation:
    """Create a transformation applying *transformations*, in order."""
    return MultiTransformation(transformations)


class NullTransformation(Transformation):
    """Returns images unchanged."""

    def transform(self, im: Image.Image) -> Image.Image:
        return im


def new_null_transformation(uri: str) -> NullTransformation:
    """Create a :class:`NullTransformation`; *uri* takes the form ``null://``."""
    return NullTransformation()


register_transformation("null", new_null_transformation)