"""
Fixed vocabularies and tag groups used by the scanner and the classifier.

All vocabularies are lower-case and matched by substring containment.
"""

import re

# --- Container signatures ---
JPEG_SOI = b"\xff\xd8"
PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
JUMBF_SIGNATURE = b"JUMBF"

JPEG_MARKER_EOI = 0xD9
JPEG_MARKER_SOS = 0xDA
JPEG_MARKER_APP11 = 0xEB

PNG_TEXT_CHUNKS = frozenset({"iTXt", "tEXt", "zTXt"})
PNG_IEND = "IEND"
PNG_PROVENANCE_HINTS = ("jumbf", "c2pa")

# --- Classifier vocabularies ---
AI_TOOL_HINTS = frozenset({
    "midjourney", "stability", "stable diffusion", "sdxl", "comfyui", "invokeai",
    "automatic1111", "dalle", "openai", "firefly", "bing image creator",
    "leonardo ai", "playground ai", "ideogram", "pixray", "nightcafe", "craiyon",
    "gen-2", "sd next", "flux", "recraft",
})

# "wa" is the WhatsApp auto-name prefix (e.g. IMG-20240101-WA0003.jpg)
MESSAGING_APP_HINTS = frozenset({
    "whatsapp", "wa", "telegram", "signal", "messenger", "wechat", "snapchat", "instagram",
})

EDITOR_HINTS = frozenset({"photoshop", "lightroom", "gimp"})

CAMERA_APP_NAME_PATTERN = re.compile(r"^(img[-_]|img_\d|pxl_)", re.IGNORECASE)

# --- EXIF tag groups ---
EXPOSURE_TAGS = ("FNumber", "ExposureTime", "ISOSpeedRatings", "ISO", "FocalLength")
XMP_SOFTWARE_TAGS = ("Software", "CreatorTool")

# Typical messaging-app downscale window (longer side, px) and aspect band (~4:3 to 16:9)
MESSAGING_MAX_SIDE_RANGE = (600, 2048)
MESSAGING_ASPECT_RANGE = (1.2, 2.0)
