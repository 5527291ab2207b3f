import html
import json
import uuid
from urllib.parse import urlencode

PAGE_STYLE = """
    body {
      font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Oxygen, Ubuntu, Cantarell, sans-serif;
      display: flex;
      justify-content: center;
      align-items: center;
      min-height: 100vh;
      margin: 0;
      background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
      color: white;
      text-align: center;
      padding: 20px;
    }
    .container { max-width: 400px; }
    h1 { font-size: 2rem; margin-bottom: 1rem; }
    p { font-size: 1.1rem; opacity: 0.9; }
    .spinner {
      border: 3px solid rgba(255,255,255,0.3);
      border-top: 3px solid white;
      border-radius: 50%;
      width: 40px;
      height: 40px;
      animation: spin 1s linear infinite;
      margin: 20px auto;
    }
    @keyframes spin {
      0% { transform: rotate(0deg); }
      100% { transform: rotate(360deg); }
    }
"""

FALLBACK_DELAY_MS = 2000


def app_redirect_url(success_url: str, user_id: uuid.UUID | str | None) -> str:
    """Deep link back into the app, tagged with the paying user."""
    if user_id is None:
        return success_url
    separator = "&" if "?" in success_url else "?"
    return f"{success_url}{separator}{urlencode({'user_id': str(user_id)})}"


def render_payment_page(
    title: str,
    message: str,
    success: bool,
    redirect_url: str | None = None,
    user_id: uuid.UUID | str | None = None,
) -> str:
    """Render the status page shown in the browser after checkout.

    On success the page tries to open `redirect_url` and alerts the user if
    the app did not take over within two seconds. Otherwise it alerts the
    message and tries to close the window.
    """
    js_message = json.dumps(message)
    if success and redirect_url:
        fallback = json.dumps(
            f"{message}\n\nIf the app doesn't open automatically, please return to the app manually."
        )
        script = f"""
      window.location.href = {json.dumps(redirect_url)};
      setTimeout(function() {{
        alert({fallback});
      }}, {FALLBACK_DELAY_MS});
"""
    else:
        script = f"""
      alert({js_message});
      setTimeout(function() {{
        window.close();
      }}, {FALLBACK_DELAY_MS});
"""

    icon = "✅" if success else "❌"
    user_attr = f' data-user-id="{html.escape(str(user_id))}"' if user_id is not None else ""
    spinner = '<div class="spinner"></div>' if success else ""

    # json.dumps leaves "</" intact; keep it from closing the script element
    script = script.replace("</", "<\\/")

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Payment Status</title>
  <style>{PAGE_STYLE}</style>
</head>
<body>
  <div class="container" data-success="{str(success).lower()}"{user_attr}>
    <h1>{icon} {html.escape(title)}</h1>
    <p>{html.escape(message)}</p>
    {spinner}
  </div>
  <script>{script}</script>
</body>
</html>
"""
