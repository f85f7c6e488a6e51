"""
Shared navigation bar — single source of truth for all pages.
"""

import streamlit as st


# All pages in display order
PAGES = [
    ("Home.py", "Home"),
    ("pages/1_💬_VOD_Chat.py", "VOD Chat"),
]


def render_nav():
    """Render the horizontal navigation bar used on every page."""
    cols = st.columns(len(PAGES))
    for col, (path, label) in zip(cols, PAGES):
        with col:
            st.page_link(path, label=label)
    st.markdown('<hr class="nav-divider">', unsafe_allow_html=True)
