import time
import logging
from langchain_core.callbacks import BaseCallbackHandler
from earthai.utils.tool_timings import record_tool_timing

logger = logging.getLogger(__name__)


class ToolTimingCallbackHandler(BaseCallbackHandler):
    """Record start/end timestamps for each tool call of one chat session."""

    def __init__(self, session_id: str = None):
        super().__init__()
        self.session_id = session_id
        self._starts = {}

    def on_tool_start(self, serialized, input_str, **kwargs):
        run_id = kwargs.get("run_id")
        tool_name = serialized.get("name") if isinstance(serialized, dict) else None
        self._starts[run_id] = (time.time(), tool_name)
        logger.debug(f"[ToolTiming] start tool={tool_name} run_id={run_id} session={self.session_id}")

    def on_tool_end(self, output, **kwargs):
        run_id = kwargs.get("run_id")
        start, tool_name = self._starts.pop(run_id, (None, None))
        if start is None:
            return
        duration = time.time() - start
        record_tool_timing(tool=tool_name or "unknown_tool", duration=duration, session_id=self.session_id)
        logger.debug(f"[ToolTiming] end tool={tool_name} run_id={run_id} session={self.session_id} duration={duration:.3f}s")

    def on_tool_error(self, error, **kwargs):
        # 실패한 호출도 시작 기록은 정리
        self._starts.pop(kwargs.get("run_id"), None)
