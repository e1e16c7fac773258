"""
HTML pages returned by OAuth callbacks.

The callback runs inside the popup the client opened for authorization. The
page tells the opener how the flow ended and closes itself; opened outside a
popup it redirects back to the front end when one is configured.
"""
import html
import json
from typing import Optional

from pydantic import BaseModel, ConfigDict

from healthsync.core.config import settings
from healthsync.models.enums import OAuthProvider

_PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>{title}</title>
  <style>
    body {{ font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif; text-align: center; padding: 48px 24px; }}
    .success {{ color: #16a34a; }}
    .error {{ color: #dc2626; }}
    .detail {{ color: #6b7280; font-size: 0.9em; word-break: break-word; }}
  </style>
</head>
<body>
  <h1 class="{css_class}">{title}</h1>
  <p>{message}</p>
  {detail_block}
  <p>You can close this window.</p>
  <script>
    (function () {{
      var message = {post_message};
      if (window.opener) {{
        window.opener.postMessage(message, "*");
        setTimeout(function () {{ window.close(); }}, {close_delay});
      }} else if ({redirect_url}) {{
        setTimeout(function () {{ window.location.href = {redirect_url}; }}, 3000);
      }}
    }})();
  </script>
</body>
</html>
"""


class CallbackPage(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    title: str
    message: str
    detail: Optional[str] = None

    @classmethod
    def failure(cls, title: str, message: str, detail: Optional[str] = None) -> "CallbackPage":
        return cls(success=False, title=title, message=message, detail=detail)


def _script_string(value: Optional[str]) -> str:
    # json.dumps quotes and escapes; "</" is broken up so it cannot close the script tag
    return json.dumps(value).replace("</", "<\\/")


def render_callback_page(provider: OAuthProvider, page: CallbackPage) -> str:
    outcome = "success" if page.success else "error"
    post_message = {"type": f"{provider.value}_oauth_{outcome}"}
    if not page.success:
        post_message["error"] = page.detail or page.message

    detail_block = ""
    if page.detail:
        detail_block = f'<p class="detail">{html.escape(page.detail)}</p>'

    return _PAGE_TEMPLATE.format(
        title=html.escape(page.title),
        css_class=outcome,
        message=html.escape(page.message),
        detail_block=detail_block,
        post_message=json.dumps(post_message).replace("</", "<\\/"),
        close_delay=1500 if page.success else 3000,
        redirect_url=_script_string(settings.frontend_url),
    )
