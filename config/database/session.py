import os
import urllib.parse

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

load_dotenv()


def _build_database_url() -> str:
    # DATABASE_URL 이 있으면 우선 사용하고, 없으면 Supabase 가 제공한 SQL_* 값으로 조립한다.
    explicit_url = os.getenv("DATABASE_URL")
    if explicit_url:
        return explicit_url

    password = urllib.parse.quote_plus(os.getenv("SQL_PASSWORD", ""))
    return (
        f"postgresql+psycopg2://{os.getenv('SQL_USER','postgres')}:{password}"
        f"@{os.getenv('SQL_HOST','localhost')}:{os.getenv('SQL_PORT','5432')}/{os.getenv('SQL_DATABASE','postgres')}"
    )


DATABASE_URL = _build_database_url()

engine = create_engine(
    DATABASE_URL,
    echo=os.getenv("SQL_ECHO", "false").lower() == "true",
    pool_pre_ping=True,
    pool_recycle=300,  # 5분마다 재사용
)

SessionLocal = sessionmaker(autoflush=False, bind=engine)

Base = declarative_base()


def init_db_schema():
    """
    애플리케이션 기동 시 테이블이 없을 경우를 대비해 스키마를 생성합니다.
    """
    # ORM 모델을 import 해야 Base.metadata 에 테이블이 등록된다.
    import thumbnail.infrastructure.orm.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
