from pydantic import BaseModel, ConfigDict


class ThemeRecord(BaseModel):
    """
    Fully resolved visual theme for one slide.

    Produced by the theme resolver, never persisted. Every field is always
    populated; unknown ids resolve to blue / modern / sans-serif.
    """
    model_config = ConfigDict(frozen=True)

    color_theme: str
    design_style: str
    font_style: str

    # Palette, normalized #rrggbb
    primary: str
    secondary: str
    accent: str

    # Dark page fill and readable text color for the rasterizer
    background: str
    text: str = "#ffffff"
