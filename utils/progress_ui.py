"""
Progress UI — progress panel for a parallel chat harvest.
Renders an HTML panel into a Streamlit st.empty() placeholder.
"""

import html
import threading

_STYLE = """
<style>
    .prg-panel {
        background: #1C1C1E;
        border: 1px solid rgba(240,238,233,0.08);
        border-radius: 16px;
        padding: 1.25rem 1.5rem;
        font-family: -apple-system, BlinkMacSystemFont, 'SF Pro Display', 'Helvetica Neue', sans-serif;
        margin: 1rem 0;
    }
    .prg-header {
        display: flex;
        align-items: center;
        justify-content: space-between;
        margin-bottom: 0.75rem;
    }
    .prg-header-left { display: flex; align-items: center; gap: 0.5rem; }
    .prg-dot {
        width: 8px; height: 8px; border-radius: 50%;
        background: #48484A; display: inline-block;
    }
    .prg-dot-active { background: #30D158; animation: prg-pulse 1.5s ease infinite; }
    .prg-dot-done { background: #30D158; }
    .prg-dot-error { background: #FF453A; }
    .prg-label { font-size: 0.875rem; color: #F0EEE9; font-weight: 500; }
    .prg-counter {
        font-size: 1.75rem; font-weight: 700; color: #F0EEE9;
        letter-spacing: -0.02em; line-height: 1;
    }
    .prg-bar {
        height: 3px; background: #2C2C2E; border-radius: 2px;
        margin-bottom: 0.5rem; overflow: hidden;
    }
    .prg-bar-fill { height: 100%; border-radius: 2px; transition: width 0.6s cubic-bezier(0.4, 0, 0.2, 1); }
    .prg-bar-active { background: #F0EEE9; }
    .prg-bar-done { background: #30D158; }
    .prg-bar-error { background: #FF453A; }
    .prg-detail { font-size: 0.8rem; color: #8E8E93; }
    @keyframes prg-pulse { 0%, 100% { opacity: 1; } 50% { opacity: 0.4; } }
</style>
"""


class HarvestProgressPanel:
    """
    Tracks a harvest's phase and chunk completion and re-renders the
    panel on every change.

    on_progress() is handed to fetch_all_messages(), which runs on the
    async runner thread, so updates are serialised with a lock.
    """

    def __init__(self, placeholder):
        self.placeholder = placeholder
        self.label = "Preparing..."
        self.total_chunks = 0
        self.completed_chunks = 0
        self.percentage = 0
        self.total_comments = None
        self.elapsed = None
        self.status = "active"  # active | done | error
        self._lock = threading.Lock()
        self._render()

    def on_message(self, msg: str):
        """Show a free-form phase message."""
        msg = str(msg).strip()
        if not msg:
            return
        with self._lock:
            self.label = msg
            self._render()

    def on_progress(self, progress):
        """Apply a HarvestProgress event."""
        with self._lock:
            self.total_chunks = progress.total_chunks
            self.completed_chunks = progress.completed_chunks
            self.percentage = progress.percentage
            self.label = f"Fetching chat... {progress.completed_chunks}/{progress.total_chunks} chunks"
            self._render()

    def complete(self, total: int, elapsed: float):
        """Mark the harvest as finished."""
        with self._lock:
            self.status = "done"
            self.percentage = 100
            self.total_comments = total
            self.elapsed = elapsed
            self.label = f"Complete — {total} comments in {elapsed:.1f}s"
            self._render()

    def fail(self, msg: str):
        with self._lock:
            self.status = "error"
            self.label = msg
            self._render()

    def _render(self):
        self.placeholder.markdown(self._build_html(), unsafe_allow_html=True)

    def _build_html(self) -> str:
        dot_class = {
            "active": "prg-dot prg-dot-active",
            "done": "prg-dot prg-dot-done",
            "error": "prg-dot prg-dot-error",
        }[self.status]
        bar_class = {
            "active": "prg-bar-fill prg-bar-active",
            "done": "prg-bar-fill prg-bar-done",
            "error": "prg-bar-fill prg-bar-error",
        }[self.status]

        counter = f"{self.percentage}%" if self.total_comments is None else str(self.total_comments)
        detail = ""
        if self.total_chunks:
            detail = (
                f'<div class="prg-detail">{self.completed_chunks} of '
                f'{self.total_chunks} chunks done</div>'
            )

        return f"""
<div class="prg-panel">
    {_STYLE}
    <div class="prg-header">
        <div class="prg-header-left">
            <span class="{dot_class}"></span>
            <span class="prg-label">{html.escape(self.label)}</span>
        </div>
        <span class="prg-counter">{counter}</span>
    </div>
    <div class="prg-bar">
        <div class="{bar_class}" style="width: {self.percentage}%"></div>
    </div>
    {detail}
</div>"""
