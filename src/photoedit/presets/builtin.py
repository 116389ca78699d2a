"""
Built-in presets shipped with the library.
"""

from photoedit.core.types import PresetCategory

BUILTIN_AUTHOR = "PhotoEdit Pro"

BUILTIN_PRESETS: list[dict] = [
    {
        "id": "portrait-warm",
        "name": "Warm Portrait",
        "description": "Warm, flattering tones for portrait photography",
        "category": PresetCategory.PORTRAIT,
        "adjustments": {
            "exposure": 0.3,
            "contrast": 15,
            "highlights": -20,
            "shadows": 25,
            "temperature": 200,
            "tint": 5,
            "vibrance": 20,
            "saturation": 10,
            "clarity": 15,
            "vignette": -15,
        },
    },
    {
        "id": "landscape-vivid",
        "name": "Vivid Landscape",
        "description": "Enhanced colors and contrast for landscape photos",
        "category": PresetCategory.LANDSCAPE,
        "adjustments": {
            "exposure": 0.2,
            "contrast": 25,
            "highlights": -30,
            "shadows": 20,
            "whites": 10,
            "blacks": -15,
            "vibrance": 40,
            "saturation": 15,
            "clarity": 25,
            "dehaze": 20,
        },
    },
    {
        "id": "black-white-classic",
        "name": "Classic B&W",
        "description": "Timeless black and white conversion",
        "category": PresetCategory.BLACK_WHITE,
        "adjustments": {
            "exposure": 0.1,
            "contrast": 30,
            "highlights": -25,
            "shadows": 15,
            "whites": 20,
            "blacks": -20,
            "saturation": -100,
            "clarity": 20,
            "vignette": -10,
        },
    },
    {
        "id": "vintage-film",
        "name": "Vintage Film",
        "description": "Nostalgic film-like appearance",
        "category": PresetCategory.VINTAGE,
        "adjustments": {
            "exposure": -0.2,
            "contrast": -10,
            "highlights": -40,
            "shadows": 30,
            "temperature": 100,
            "tint": 10,
            "saturation": -20,
            "vibrance": -15,
            "clarity": -20,
            "vignette": -25,
            "split_toning": {
                "highlights": {"hue": 45, "saturation": 15},
                "shadows": {"hue": 220, "saturation": 10},
                "balance": 0,
            },
        },
    },
    {
        "id": "street-moody",
        "name": "Moody Street",
        "description": "Dark, moody atmosphere for urban photography",
        "category": PresetCategory.STREET,
        "adjustments": {
            "exposure": -0.5,
            "contrast": 35,
            "highlights": -50,
            "shadows": -20,
            "whites": -10,
            "blacks": -30,
            "temperature": -100,
            "saturation": -30,
            "vibrance": 20,
            "clarity": 30,
            "dehaze": 15,
            "vignette": -20,
        },
    },
    {
        "id": "modern-bright",
        "name": "Modern Bright",
        "description": "Clean, bright modern look",
        "category": PresetCategory.MODERN,
        "adjustments": {
            "exposure": 0.4,
            "contrast": 20,
            "highlights": -15,
            "shadows": 35,
            "whites": 15,
            "blacks": 10,
            "temperature": 50,
            "vibrance": 25,
            "saturation": 5,
            "clarity": 10,
            "dehaze": 10,
        },
    },
    {
        "id": "artistic-dramatic",
        "name": "Dramatic Art",
        "description": "High contrast artistic processing",
        "category": PresetCategory.ARTISTIC,
        "adjustments": {
            "exposure": 0.2,
            "contrast": 50,
            "highlights": -60,
            "shadows": 40,
            "whites": 25,
            "blacks": -40,
            "vibrance": 30,
            "saturation": 20,
            "clarity": 40,
            "dehaze": 25,
            "vignette": -30,
            "color_grading": {
                "shadows": {"hue": 240, "saturation": 20, "luminance": -10},
                "midtones": {"hue": 30, "saturation": 10, "luminance": 0},
                "highlights": {"hue": 60, "saturation": 15, "luminance": 10},
                "global_saturation": 0,
                "global_luminance": 0,
                "balance": 0,
            },
        },
    },
]
