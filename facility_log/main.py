# facility_log/main.py - 메인 애플리케이션

import sys
from pathlib import Path

import eel

from facility_log.business.session import LogbookSession
from facility_log.utils.config import config
from facility_log.utils.logger import logger
from facility_log.utils.scheduler import ThreadScheduler
from facility_log.web import api


def main():
    """메인 애플리케이션 실행"""

    logger.info("=" * 60)
    logger.info(f"{config.app_name} v{config.version} 시작")
    logger.info("=" * 60)

    session = LogbookSession(scheduler=ThreadScheduler())
    api.bind_session(session)
    session.init()

    web_folder = Path(__file__).parent.parent / "web"
    eel.init(str(web_folder), allowed_extensions=['.js', '.html'])

    window_options = {
        'mode': config.get('ui.mode', 'chrome'),
        'host': 'localhost',
        'port': config.get('ui.port', 8687),
        'size': (config.get('ui.window_width', 900),
                 config.get('ui.window_height', 900)),
    }

    try:
        logger.info(f"웹 UI 시작: http://localhost:{window_options['port']}")
        eel.start('index.html', **window_options)

    except KeyboardInterrupt:
        logger.info("사용자에 의해 종료됨")

    except Exception as e:
        logger.error(f"애플리케이션 오류: {e}")
        raise

    finally:
        # 폴링 타이머 정리
        session.dispose()
        api.bind_session(None)
        logger.info(f"{config.app_name} 종료")


if __name__ == '__main__':
    sys.exit(main())
