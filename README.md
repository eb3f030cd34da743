# imagery

Tools for working with images on top of Pillow and NumPy: decoding (with
automatic rotation from the EXIF `Orientation` tag), resizing, rotating,
colour conversion from Adobe RGB or Display P3 to sRGB, pixel replacement,
background filling, EXIF reading and writing, and re-encoding.

## Installation

```
pip install .
```

To run the test suite:

```
pip install .[test]
pytest
```

## Command line

Two commands are installed. Both read images from a source location and
write them to a target location given as `file://` URIs. With the default
`file:///`, each path given on the command line is resolved to an absolute
path; with any other `file://` URI, paths are taken relative to that
directory. Images are processed concurrently; the first failure is reported
on standard error and the command exits with status 1.

Boolean options can be given as `--rotate` / `--no-rotate` or as
`-rotate=true` / `-rotate=false`. Every option can be written with one or
two leading dashes.

### imagery-transform

Apply one or more transformation URIs to one or more images.

```
imagery-transform --transformation-uri 'rotate://?orientation=6' --apply-suffix -rotated photo.jpg
```

Options:

- `--transformation-uri` — transformation URIs; may be repeated or given as
  a comma-separated list. Transformations run in the order given.
- `--source-uri` — where images are read from (default `file:///`).
- `--target-uri` — where images are written to (default `file:///`).
- `--apply-suffix` — a suffix added to the output filename, before the
  extension.
- `--format` — output format: `jpeg` (or `jpg`), `png`, `tiff`, `bmp` or
  `heic`. The output file's extension is changed to match. When omitted,
  the output is written in the input's format; GIF and WebP input therefore
  needs an explicit `--format`.
- `--rotate` — rotate according to the EXIF orientation (default on).
- `--preserve-exif` — copy the input's EXIF data to the output with
  `Orientation` set to `1`. Only JPEG and PNG output carry it.

### imagery-resize

Resize images so that their longest side is at most `--max` pixels. The
output name gets a `-{max}` suffix. `--max` must be a positive number.

```
imagery-resize --max 300 photo.jpg
```

It also accepts `--profile` (`adobergb` or `displayp3`) to convert colours
as the last step, `--transformation-uri` for extra transformations applied
after resizing, and `--source-uri`, `--target-uri`, `--rotate` and
`--preserve-exif` as above. Output keeps the input's format.

## Transformation URIs

| URI                          | Module                   | Effect                                          |
|------------------------------|--------------------------|-------------------------------------------------|
| `null://`                    | `imagery.transform`      | returns the image unchanged                     |
| `resize://?max=N`            | `imagery.resize`         | scales so the largest dimension is at most `N`  |
| `rotate://?orientation=N`    | `imagery.rotate`         | applies EXIF orientation `N` (1–8, default 1)   |
| `adobergb://`                | `imagery.colour.convert` | reads colours as Adobe RGB, writes sRGB         |
| `displayp3://`               | `imagery.colour.convert` | reads colours as Display P3, writes sRGB        |

A scheme is available once its module has been imported. Further schemes
can be added with `imagery.transform.register_transformation(name, func)`,
where `func` takes the URI and returns a `Transformation`.

## Library use

```python
from PIL import Image

from imagery.resize import resize_image
from imagery.rotate import rotate_image_with_degrees
from imagery.transform import new_multi_transformation_with_uris

im = Image.open("photo.jpg")

small = resize_image(im, 300)
turned = rotate_image_with_degrees(im, 90.0)   # 90, 180 or 270 only

tr = new_multi_transformation_with_uris("resize://?max=300", "rotate://?orientation=8")
out = tr.transform(im)
```

Decoding with EXIF-aware rotation:

```python
from imagery.decode import decode_image

with open("photo.jpg", "rb") as fh:
    im, mime_type, exif_data = decode_image(fh)
```

`decode_image_with_options(fh, DecodeImageOptions(rotate=False))` skips the
rotation. JPEG, PNG, GIF, WebP, BMP and TIFF are decoded; HEIC only when a
HEIF codec is registered with Pillow, otherwise a `ValueError` is raised.

Reading EXIF tags and colour information:

```python
from imagery.exif import tag_value
from imagery.colour.profile import Model, derive_model

with open("photo.jpg", "rb") as fh:
    entry = tag_value(fh, "ColorSpace", "IFD/Exif")
    print(entry.values)

with open("photo.jpg", "rb") as fh:
    model = derive_model(fh)   # Model.SRGB, Model.ADOBE_RGB, ...
```

Modules:

- `imagery.imaging.tools` — `new`, `clone`, `crop`, `crop_anchor`,
  `crop_center`, `paste`, `paste_center`, `overlay`, `overlay_center`
  and the `Anchor` enumeration. All return 8-bit RGBA images.
- `imagery.imaging.transform` — `flip_h`, `flip_v`, `transpose`,
  `transverse`, `rotate90`, `rotate180`, `rotate270` (counter-clockwise)
  and `rotate` for arbitrary angles with bilinear interpolation.
- `imagery.background` — `add_background` draws an image over a solid colour.
- `imagery.pixel` — `replace_pixels` with functions built by
  `make_replace_pixel_func` (using `ReplacePixelKey`),
  `make_transparent_pixel_func` and `make_multi_pixel_func`.
- `imagery.transform` — `Transformation`, `MultiTransformation`,
  `NullTransformation`, `new_transformation`,
  `new_multi_transformation`, `new_multi_transformation_with_uris`.
- `imagery.rotate` — `rotate_image_with_orientation`,
  `rotate_image_with_degrees`, `get_image_orientation` (returns `"0"` when
  there is no orientation) and `RotateTransformation`.
- `imagery.resize` — `resize_image` (Lanczos resampling; images already
  within the limit are returned unchanged) and `ResizeTransformation`.
- `imagery.exif` — `tag_index`, `tag_value`, `tag_values` and their
  `_with_index` forms returning `TagEntry` objects; IFDs are named `IFD`,
  `IFD1`, `IFD/Exif`, `IFD/GPSInfo` and `IFD/Exif/Iop`.
  `new_ifd_builder_with_orientation` copies EXIF data with a new
  orientation, and `update_exif` writes an image as JPEG with EXIF tags
  given by name.
- `imagery.colour.convert` — `to_adobe_rgb`, `to_display_p3` and their
  transformations.
- `imagery.colour.profile` — `Model`, `string_to_model`, `color_space`,
  `icc_profile_description` and `derive_model`.
- `imagery.encode` — `encode_jpeg` (quality 100 by default), `encode_png`,
  `encode_tiff`, `encode_bmp`, `encode_gif` and `encode_heic`. JPEG and PNG
  carry EXIF data; the others log a warning and drop it.

## Limitations

- Images are read from and written to the local file system only; the
  commands accept no storage location other than `file://` URIs.
- HEIC decoding and encoding work only when a HEIF codec has been
  registered with Pillow; otherwise they raise `ValueError`.
- Colour conversion always produces sRGB; it does not embed or convert ICC
  profiles.