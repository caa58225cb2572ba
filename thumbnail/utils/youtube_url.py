from urllib.parse import parse_qs, urlparse


def parse_youtube_video_id(url: str | None) -> str | None:
    # 한국어 주석: 게시된 영상 URL(watch/shorts/embed/youtu.be)에서 video_id 를 추출한다.
    if not url:
        return None
    parsed = urlparse(url.strip())
    host = (parsed.netloc or "").lower()
    segments = [segment for segment in (parsed.path or "").split("/") if segment]

    if host.endswith("youtu.be"):
        return segments[0] if segments else None

    if host.endswith("youtube.com"):
        if segments[:1] == ["watch"]:
            return (parse_qs(parsed.query).get("v") or [None])[0]
        if len(segments) >= 2 and segments[0] in ("shorts", "embed", "live"):
            return segments[1]

    return None
