# app/main.py  (통합 엔트리포인트)
import sys

from dotenv import load_dotenv

# 루트 .env 로딩 (Settings 생성 전에 한 번에)
load_dotenv()

from app.backend.main import app as app  # noqa: E402
from app.backend.server import run  # noqa: E402


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
