"""Pixel-level image operations: cropping, pasting, flipping and rotation."""