from urllib.parse import urlparse


def storage_key_from_url(image_url: str) -> str:
    # 한국어 주석: 스토리지 URL 의 경로 부분을 그대로 오브젝트 키로 사용한다. (퍼센트 인코딩은 유지)
    return urlparse(image_url.strip()).path
