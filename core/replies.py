"""User-facing replies for failures that reach a handler boundary."""

from providers.errors import LocationNotFoundError, NotFoundError, NotLoggedInError

SERVER_ERROR = ":dizzy_face: 서버 오류예요..."


def _object_particle(word: str) -> str:
    # 을 after a final consonant, 를 after a vowel (Hangul syllables only)
    last = word[-1:] if word else ""
    if "가" <= last <= "힣" and (ord(last) - ord("가")) % 28:
        return "을"
    return "를"


def classify_error(e: BaseException) -> str:
    """Turn an exception into a short reply for the channel.

    Anything that is not a known provider condition gets the generic apology;
    the caller is expected to have logged the details already.
    """
    if isinstance(e, NotLoggedInError):
        return ":x: 로그인부터 해야 해요!"
    if isinstance(e, LocationNotFoundError):
        return ":x: 주소를 찾을 수 없어요."
    if isinstance(e, NotFoundError):
        return f":x: {e.subject}{_object_particle(e.subject)} 찾을 수 없어요."
    return SERVER_ERROR
