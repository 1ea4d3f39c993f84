import sys
from pathlib import Path

from dotenv import load_dotenv
import uvicorn

current_dir = Path(__file__).parent
load_dotenv(current_dir / ".env")

def main():
    from thisorthat.config import settings

    print("🎨 Starting This or That? Design Preference Service...")
    print(f"🌐 Server: http://{settings.HOST}:{settings.PORT}")
    print(f"📖 API Docs: http://{settings.HOST}:{settings.PORT}/docs")
    print("=" * 50)

    try:
        uvicorn.run(
            "thisorthat.main:app",
            host=settings.HOST,
            port=settings.PORT,
            reload=settings.RELOAD and settings.DEBUG,
            log_level=settings.LOG_LEVEL.lower(),
            workers=1  # Sessions live in process memory
        )
    except KeyboardInterrupt:
        print("Stopped by user")
    except Exception as e:
        print(f"❌ Error: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
