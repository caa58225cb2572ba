from thumbnail.utils.storage_key import storage_key_from_url


def test_storage_key_is_url_path():
    url = "https://proj.supabase.co/storage/v1/object/public/thumbnails/user-1/a.jpg?token=abc"
    assert storage_key_from_url(url) == "/storage/v1/object/public/thumbnails/user-1/a.jpg"


def test_storage_key_keeps_percent_encoding():
    url = "https://cdn.example.com/thumbnails/my%20thumb%2Bfinal.png"
    assert storage_key_from_url(url) == "/thumbnails/my%20thumb%2Bfinal.png"
