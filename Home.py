"""
Twitch VOD Chat Harvester — Landing Page
=========================================
Streamlit multi-page app entry point.
"""

import streamlit as st
from pathlib import Path

from config.settings import get_setting

st.set_page_config(
    page_title="Twitch VOD Chat Harvester",
    page_icon="💬",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Load custom CSS
css_path = Path(__file__).parent / "assets" / "style.css"
if css_path.exists():
    st.markdown(f"<style>{css_path.read_text()}</style>", unsafe_allow_html=True)

# Sidebar
with st.sidebar:
    st.markdown("### 💬 VOD Chat Harvester")
    st.markdown("---")
    st.markdown("Open **VOD Chat** from the sidebar to download a chat replay.")
    st.markdown("---")
    st.caption("No login or API key needed.")

# Hero section
st.markdown("")
st.markdown(
    '<h1 class="hero-title">Twitch VOD Chat Harvester</h1>',
    unsafe_allow_html=True,
)
st.markdown(
    "**Download the full chat replay of any Twitch VOD — fast, in order, without duplicates.**"
)
st.markdown("---")

col1, col2 = st.columns(2)

with col1:
    st.markdown(
        """
        <div class="platform-card">
            <h3>💬 VOD Chat</h3>
            <p>Paste a video link and get every chat message with its timestamp in the video.</p>
            <p><strong>Features:</strong> parallel download, live progress, CSV / JSON export</p>
            <p><em>Videos up to 48 hours</em></p>
        </div>
        """,
        unsafe_allow_html=True,
    )
    if st.button("Start Harvesting →", key="vod_btn", use_container_width=True):
        st.switch_page("pages/1_💬_VOD_Chat.py")

with col2:
    st.markdown("#### How it works")
    st.markdown(
        "1. The video length is estimated with a handful of probe requests.\n"
        "2. The video is split into time chunks fetched in parallel.\n"
        "3. Chunks are merged, duplicates removed, and messages sorted by video time."
    )
    st.caption(
        f"Default parallelism: {get_setting('ui_concurrency')} chunks here, "
        f"{get_setting('concurrency')} from the command line."
    )
