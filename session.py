# session.py
import asyncio
import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Sequence, Union

from errors import AnalyzerError, IllegalTransitionError
from prompts import PROGRESS_CAPTIONS
from schemas import AnalysisRecord, EncodedImage
from services.encoder import encode
from services.utils import debug

CAPTION_INTERVAL_S = 2.0
GENERIC_FAILURE = AnalyzerError.default_message


@dataclass(frozen=True)
class Upload:
    pass


@dataclass(frozen=True)
class Analyzing:
    caption_index: int = 0


@dataclass(frozen=True)
class Result:
    record: AnalysisRecord


InteractionState = Union[Upload, Analyzing, Result]

Encoder = Callable[[Any], Awaitable[EncodedImage]]
Analyzer = Callable[[EncodedImage], Union[AnalysisRecord, Awaitable[AnalysisRecord]]]


class AnalyzerSession:
    """
    One user's upload -> analyzing -> result cycle.

    Every path out of Analyzing ends in Result or back in Upload. Failures are
    reported once through `notify` and never retried. The caption ticker only
    lives while the session is Analyzing.
    """

    def __init__(
        self,
        analyzer: Analyzer,
        notify: Callable[[str], None],
        encoder: Encoder = encode,
        captions: Sequence[str] = PROGRESS_CAPTIONS,
        interval: float = CAPTION_INTERVAL_S,
        on_caption: Optional[Callable[[str], None]] = None,
    ):
        if not captions:
            raise ValueError("at least one progress caption is required")
        self._analyzer = analyzer
        self._notify = notify
        self._encoder = encoder
        self.captions = tuple(captions)
        self.interval = interval
        self.on_caption = on_caption
        self._state: InteractionState = Upload()
        self.preview: Optional[bytes] = None

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def caption(self) -> Optional[str]:
        if isinstance(self._state, Analyzing):
            return self.captions[self._state.caption_index]
        return None

    @property
    def record(self) -> Optional[AnalysisRecord]:
        if isinstance(self._state, Result):
            return self._state.record
        return None

    def _reset(self) -> None:
        self._state = Upload()
        self.preview = None

    def _show_caption(self, index: int) -> None:
        if not self.on_caption:
            return
        try:
            self.on_caption(self.captions[index])
        except Exception as e:
            # captions are presentation only; a broken renderer must not fail the run
            debug("Caption callback failed:", repr(e))

    async def _tick(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            if not isinstance(self._state, Analyzing):
                return
            nxt = (self._state.caption_index + 1) % len(self.captions)
            self._state = Analyzing(nxt)
            self._show_caption(nxt)

    async def _stop(self, ticker: asyncio.Task) -> None:
        ticker.cancel()
        try:
            await ticker
        except asyncio.CancelledError:
            pass

    async def _run(self, file) -> AnalysisRecord:
        image = await self._encoder(file)
        record = self._analyzer(image)
        if inspect.isawaitable(record):
            record = await record
        return record

    async def select_file(self, file, preview: Optional[bytes] = None) -> InteractionState:
        if file is None:
            return self._state
        if not isinstance(self._state, Upload):
            raise IllegalTransitionError(f"cannot select a file while {type(self._state).__name__}")

        ticker: Optional[asyncio.Task] = None
        failure: Optional[Exception] = None
        record = None
        try:
            self._state = Analyzing(0)
            self.preview = preview
            self._show_caption(0)
            ticker = asyncio.create_task(self._tick())
            try:
                record = await self._run(file)
            except Exception as e:
                failure = e
            finally:
                await self._stop(ticker)
        except BaseException:
            # cancelled or interrupted: no notification, but never stay Analyzing
            if ticker is not None and not ticker.done():
                ticker.cancel()
            self._reset()
            raise

        if failure is not None:
            debug("Error processing image:", repr(failure))
            self._reset()
            message = getattr(failure, "message", "") or str(failure) or GENERIC_FAILURE
            self._notify(message)
        else:
            self._state = Result(record)
        return self._state

    def analyze_another(self) -> InteractionState:
        if not isinstance(self._state, Result):
            raise IllegalTransitionError(f"nothing to restart while {type(self._state).__name__}")
        self._reset()
        return self._state

    def abandon(self) -> InteractionState:
        """Drop a run that was interrupted from outside and go back to Upload."""
        self._reset()
        return self._state
