"""
지도 상태(MapViewState) 관리

이벤트 4종을 처리합니다.
1. viewport_changed: 사용자가 지도를 이동/확대 (임계값 미만 변화는 무시)
2. name_resolved: 역지오코딩 완료 (요청 좌표가 현재 중심과 같을 때만 반영)
3. navigate_to: 링크 클릭 등 명시적 이동 (임계값 없이 항상 반영)
4. set_map_style: 지도 스타일 변경 (이름 조회 없음)

이름 조회는 취소하지 않습니다. 늦게 도착한 결과는 좌표 비교로 버립니다.
"""

import asyncio
import logging
import threading
from typing import Awaitable, Callable, Dict, List, Optional, Set

from earthai.config import settings
from earthai.models.map_models import Coordinates, MapStyle, MapViewState
from earthai.tools.geocoding_tool import reverse_geocode_async

logger = logging.getLogger(__name__)

NameResolver = Callable[[Coordinates], Awaitable[str]]
StateListener = Callable[[MapViewState], None]
SetViewCommand = Callable[[Coordinates, float], None]

# 13.1 - 13.0 == 0.0999... 같은 부동소수점 오차 보정
ZOOM_TOLERANCE = 1e-9


def default_view_state() -> MapViewState:
    """앱 시작 시 기본 지도 상태"""
    return MapViewState(
        center=Coordinates(lat=settings.DEFAULT_LAT, lng=settings.DEFAULT_LNG),
        zoom=min(max(settings.DEFAULT_ZOOM, settings.MIN_ZOOM), settings.MAX_ZOOM),
        map_style=MapStyle(settings.DEFAULT_MAP_STYLE),
    )


class ViewportReconciler:
    """
    하나의 세션이 소유하는 지도 상태.

    상태는 매번 새 스냅샷(MapViewState)으로 교체되며, 락 안에서만 읽고 씁니다.
    이름 조회 결과를 적용할 때는 조회 시작 시점의 스냅샷이 아니라 '현재' 중심 좌표와 비교합니다.
    """

    def __init__(
        self,
        resolver: Optional[NameResolver] = None,
        initial_state: Optional[MapViewState] = None,
        *,
        min_zoom: Optional[float] = None,
        max_zoom: Optional[float] = None,
        center_epsilon: Optional[float] = None,
        zoom_epsilon: Optional[float] = None,
        set_view: Optional[SetViewCommand] = None,
    ):
        self._resolver = resolver or reverse_geocode_async
        self.min_zoom = settings.MIN_ZOOM if min_zoom is None else min_zoom
        self.max_zoom = settings.MAX_ZOOM if max_zoom is None else max_zoom
        self.center_epsilon = settings.CENTER_EPSILON if center_epsilon is None else center_epsilon
        self.zoom_epsilon = settings.ZOOM_EPSILON if zoom_epsilon is None else zoom_epsilon
        self._set_view = set_view

        state = initial_state or default_view_state()
        self._state = state.model_copy(update={"zoom": self.clamp_zoom(state.zoom)})
        self._lock = threading.Lock()
        self._lookups: Set[asyncio.Task] = set()
        self._listeners: List[StateListener] = []

    # ------------------------------------------------------------------
    # 조회 / 구독
    # ------------------------------------------------------------------

    @property
    def state(self) -> MapViewState:
        with self._lock:
            return self._state

    @property
    def pending_lookups(self) -> int:
        return sum(1 for task in self._lookups if not task.done())

    def add_listener(self, listener: StateListener) -> None:
        """상태가 바뀔 때마다 호출될 콜백 등록 (onMapStateChange 역할)"""
        self._listeners.append(listener)

    def clamp_zoom(self, zoom: float) -> float:
        return min(max(float(zoom), self.min_zoom), self.max_zoom)

    def is_significant_change(self, center: Coordinates, zoom: float) -> bool:
        return self._differs(self.state, center, self.clamp_zoom(zoom))

    # ------------------------------------------------------------------
    # 이벤트 처리
    # ------------------------------------------------------------------

    def viewport_changed(self, center: Coordinates, zoom: float) -> Optional[asyncio.Task]:
        """
        지도 화면에서 발생한 이동/확대 이벤트.
        미세한 변화(렌더링 반올림 노이즈)는 무시하고 None을 반환합니다.
        유의미한 변화면 즉시 상태를 갱신하고 이름 조회 태스크를 반환합니다.
        """
        zoom = self.clamp_zoom(zoom)
        with self._lock:
            if not self._differs(self._state, center, zoom):
                return None
            self._state = self._state.model_copy(update={"center": center, "zoom": zoom})
            snapshot = self._state

        self._notify(snapshot)
        return self._request_name(center)

    def navigate_to(self, coordinates: Coordinates, zoom: Optional[float] = None) -> Optional[asyncio.Task]:
        """명시적 이동 요청. 거리와 상관없이 항상 반영합니다."""
        with self._lock:
            target_zoom = self._state.zoom if zoom is None else self.clamp_zoom(zoom)
            self._state = self._state.model_copy(update={"center": coordinates, "zoom": target_zoom})
            snapshot = self._state

        if self._set_view is not None:
            self._set_view(coordinates, target_zoom)

        logger.info(f"📍 지도 이동: ({coordinates.lat}, {coordinates.lng}) zoom={target_zoom}")
        self._notify(snapshot)
        return self._request_name(coordinates)

    def set_map_style(self, map_style: MapStyle) -> MapViewState:
        with self._lock:
            self._state = self._state.model_copy(update={"map_style": MapStyle(map_style)})
            snapshot = self._state
        self._notify(snapshot)
        return snapshot

    def name_resolved(self, for_coordinates: Coordinates, name: str) -> bool:
        """
        이름 조회 완료. 조회 좌표가 현재 중심과 다르면 (그 사이 지도가 이동했으면) 버립니다.
        """
        with self._lock:
            if for_coordinates != self._state.center:
                logger.info(
                    f"⏭️ 오래된 이름 조회 결과 무시: ({for_coordinates.lat}, {for_coordinates.lng}) -> {name}"
                )
                return False
            self._state = self._state.model_copy(update={"resolved_name": name})
            snapshot = self._state

        self._notify(snapshot)
        return True

    def resolve_initial(self) -> Optional[asyncio.Task]:
        """시작 위치의 이름 조회"""
        return self._request_name(self.state.center)

    async def wait_idle(self) -> None:
        """진행 중인 이름 조회가 모두 끝날 때까지 대기"""
        while self._lookups:
            await asyncio.gather(*list(self._lookups), return_exceptions=True)

    # ------------------------------------------------------------------
    # 내부
    # ------------------------------------------------------------------

    def _differs(self, current: MapViewState, center: Coordinates, zoom: float) -> bool:
        return (
            abs(center.lat - current.center.lat) > self.center_epsilon
            or abs(center.lng - current.center.lng) > self.center_epsilon
            or abs(zoom - current.zoom) >= self.zoom_epsilon - ZOOM_TOLERANCE
        )

    def _request_name(self, coordinates: Coordinates) -> Optional[asyncio.Task]:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("실행 중인 이벤트 루프가 없어 이름 조회를 건너뜀")
            return None

        task = loop.create_task(self._lookup(coordinates))
        self._lookups.add(task)
        task.add_done_callback(self._lookups.discard)
        return task

    async def _lookup(self, coordinates: Coordinates) -> None:
        try:
            name = await self._resolver(coordinates)
        except Exception as e:
            # 조회 실패: resolved_name은 이전 값 유지
            logger.warning(f"이름 조회 실패 ({coordinates.lat}, {coordinates.lng}): {e}")
            return

        if not name:
            return
        self.name_resolved(coordinates, name)

    def _notify(self, state: MapViewState) -> None:
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("지도 상태 리스너 오류")


# ---------------------------------------------------------------------------
# 세션별 reconciler 보관 (session_id -> reconciler)
# ---------------------------------------------------------------------------

_reconcilers: Dict[str, ViewportReconciler] = {}


def get_reconciler(session_id: str) -> ViewportReconciler:
    """세션의 reconciler 반환 (없으면 기본 상태로 생성)"""
    if session_id not in _reconcilers:
        _reconcilers[session_id] = ViewportReconciler()
        logger.info(f"새로운 지도 세션: {session_id}")
    return _reconcilers[session_id]


def clear_reconciler(session_id: str):
    if session_id in _reconcilers:
        del _reconcilers[session_id]
        logger.info(f"지도 세션 삭제: {session_id}")
