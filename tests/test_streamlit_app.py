from __future__ import annotations

from streamlit.testing.v1 import AppTest


def test_pending_navigation_renders_without_raw_html():
    app = AppTest.from_file("../streamlit_app.py", default_timeout=10)
    app.session_state["navigate_to"] = "https://pay.example/cs_1?x=\"><script>"
    app.run()

    assert not app.exception
    assert all("http-equiv" not in block.value for block in app.markdown)
    assert "navigate_to" not in app.session_state
