from abc import ABC, abstractmethod


class ISessionStore(ABC):
    @abstractmethod
    def create_session(self) -> str:
        pass

    @abstractmethod
    def check_session(self, token: str | None) -> bool:
        pass

    @abstractmethod
    def clear_session(self, token: str | None) -> None:
        pass
