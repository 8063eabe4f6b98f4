from __future__ import annotations

import json
from functools import lru_cache
from html import escape
from pathlib import Path

from src.config import Settings
from src.web.form import client_config

STATIC_DIR = Path(__file__).resolve().parent / "static"
CONFIG_PLACEHOLDER = "__SIGNUP_CONFIG__"
RECAPTCHA_SCRIPT_URL = "https://www.google.com/recaptcha/api.js"


@lru_cache(maxsize=1)
def _template() -> str:
    return (STATIC_DIR / "index.html").read_text(encoding="utf-8")


def _script_safe_json(value: object) -> str:
    return json.dumps(value).replace("<", "\\u003c").replace(">", "\\u003e").replace("&", "\\u0026")


def render_landing_page(settings: Settings) -> str:
    config = client_config(site_key=settings.recaptcha_site_key, action=settings.recaptcha_action)
    html = _template().replace(CONFIG_PLACEHOLDER, _script_safe_json(config))
    if settings.recaptcha_site_key:
        loader = f'<script src="{RECAPTCHA_SCRIPT_URL}?render={escape(settings.recaptcha_site_key)}" defer></script>'
    else:
        loader = ""
    return html.replace("<!-- recaptcha -->", loader)
