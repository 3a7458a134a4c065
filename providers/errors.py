# Provider-side failures, translated into replies by core.replies
class ProviderError(Exception):
    pass


class NotLoggedInError(ProviderError):
    pass


class NotFoundError(ProviderError):
    def __init__(self, key: str, subject: str = "일러스트"):
        super().__init__(key)
        self.subject = subject


class SyosetuNotFoundError(NotFoundError):
    def __init__(self, ncode: str):
        super().__init__(ncode, subject="소설")


class LocationNotFoundError(NotFoundError):
    def __init__(self, query: str):
        super().__init__(query, subject="주소")
