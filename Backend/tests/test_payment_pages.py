import uuid

from app.services.payment_pages import app_redirect_url, render_payment_page


def test_app_redirect_url_appends_user():
    user_id = uuid.uuid4()
    assert app_redirect_url("muscleai://payment-success", user_id) == (
        f"muscleai://payment-success?user_id={user_id}"
    )
    assert app_redirect_url("muscleai://done?src=web", "u1") == "muscleai://done?src=web&user_id=u1"
    assert app_redirect_url("muscleai://payment-success", None) == "muscleai://payment-success"


def test_success_page_redirects_into_app():
    page = render_payment_page(
        "Success",
        "Payment successful! Redirecting to app...",
        success=True,
        redirect_url="muscleai://payment-success?user_id=u1",
        user_id="u1",
    )
    assert "<title>Payment Status</title>" in page
    assert 'data-success="true"' in page
    assert 'data-user-id="u1"' in page
    assert 'window.location.href = "muscleai://payment-success?user_id=u1"' in page
    assert "spinner" in page
    assert "window.close" not in page


def test_failure_page_closes_window():
    page = render_payment_page("Payment Failed", "Your payment was not successful. Please try again.", success=False)
    assert 'data-success="false"' in page
    assert "data-user-id" not in page
    assert "window.close()" in page
    assert "window.location.href" not in page


def test_page_escapes_text():
    page = render_payment_page("<b>Error</b>", "</script><script>alert(1)</script>", success=False)
    assert "<b>Error</b>" not in page
    assert "&lt;b&gt;Error&lt;/b&gt;" in page
    assert "</script><script>" not in page
