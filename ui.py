import asyncio

import streamlit as st

from services.api_client import ApiAnalyzer
from session import Analyzing, AnalyzerSession, Result, Upload

st.set_page_config(page_title="Samosa Sharpness Analyzer", layout="centered")
st.title("Samosa Sharpness Analyzer")
st.markdown("*Because geometry tastes better with chai.*")


class UploadedImage:
    """Gives a Streamlit upload the content_type/read() surface the encoder expects."""

    def __init__(self, uploaded):
        self.content_type = uploaded.type
        self._uploaded = uploaded

    def read(self) -> bytes:
        return self._uploaded.getvalue()


def _alert(message: str) -> None:
    st.session_state["alert"] = message


if "session" not in st.session_state:
    st.session_state["session"] = AnalyzerSession(analyzer=ApiAnalyzer(), notify=_alert)
    st.session_state["upload_key"] = 0

session: AnalyzerSession = st.session_state["session"]

alert = st.session_state.pop("alert", None)
if alert:
    st.error(alert)

if isinstance(session.state, Upload):
    uploaded = st.file_uploader(
        "Upload Your Samosa Photo 🍽️",
        type=["jpg", "jpeg", "png", "webp", "gif"],
        key=f"upload_{st.session_state['upload_key']}",
    )
    if uploaded is not None:
        # fresh widget next run so the same file is not picked up again
        st.session_state["upload_key"] += 1
        st.image(uploaded.getvalue(), width=256)
        caption = st.empty()
        session.on_caption = lambda text: caption.markdown(f"`{text}`")
        try:
            asyncio.run(session.select_file(UploadedImage(uploaded), preview=uploaded.getvalue()))
        finally:
            session.on_caption = None
        st.rerun()

elif isinstance(session.state, Analyzing):
    # left over from a run that was interrupted by a rerun
    session.abandon()
    st.rerun()

elif isinstance(session.state, Result):
    record = session.record
    if session.preview:
        st.image(session.preview, width=256)

    st.subheader("AI Analysis Results")
    for corner in record.corners:
        st.markdown(f"**{corner.name}:** {corner.angle:g}° – {corner.comment}")
    st.markdown(f"### Triangle Perfection Score: {record.score:g} / 100")

    if st.button("Analyze Another Samosa"):
        session.analyze_another()
        st.rerun()
