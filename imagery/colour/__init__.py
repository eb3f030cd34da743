"""Colour model detection and conversion of wide-gamut colours to sRGB."""