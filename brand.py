from __future__ import annotations
from typing import Tuple

RGB = Tuple[int, int, int]

def hex_to_rgb(hex_color: str) -> RGB:
    s = hex_color.strip().lstrip("#")
    if len(s) == 3:
        s = "".join(c*2 for c in s)
    return (int(s[0:2],16), int(s[2:4],16), int(s[4:6],16))

BLUE: RGB = hex_to_rgb("#3253EE")
LIME: RGB = hex_to_rgb("#B4FF00")
WHITE: RGB = (255, 255, 255)
SHADOW: RGB = (5, 5, 5)         # soft black at the bottom of the gradient map
BACKDROP: RGB = hex_to_rgb("#050505")
