"""プロバイダUIの表示先を提供するインターフェース。"""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class PresentationSurfaceProvider(Protocol):
    """現在アクティブな表示先（ウィンドウ等）を返す。

    表示先はサインイン要求の時点で毎回読み出され、キャッシュされない。
    """

    def current_anchor(self) -> Optional[Any]:
        """アクティブな表示先。存在しない場合はNone。"""


class StaticPresentationProvider:
    """固定の表示先を返す実装。

    デスクトップやテストで、表示先が外部ブラウザなど固定の場合に使う。
    """

    def __init__(self, anchor: Optional[Any] = None) -> None:
        self.anchor = anchor

    def current_anchor(self) -> Optional[Any]:
        return self.anchor
