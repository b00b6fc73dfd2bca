import logging

from dotenv import load_dotenv

from bot_cogs import ADMIN_COGS, COGS
from bot_modules.bot import ErutcurtsBot
from erutcurts.config import BOT_NAME, BOT_VERSION, LOG_FILE, LOG_FORMAT, LOG_LEVEL, get_env

load_dotenv()

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(LOG_FILE, encoding="utf-8"),
        ],
    )


def main():
    setup_logging()
    logger.info(f"{BOT_NAME} {BOT_VERSION} 시작")

    bot = ErutcurtsBot(cogs=COGS, admin_cogs=ADMIN_COGS)
    # 로깅은 위에서 설정했으므로 discord.py 의 기본 핸들러는 사용하지 않음
    bot.run(get_env("DISCORD_TOKEN"), log_handler=None)


if __name__ == "__main__":
    main()
