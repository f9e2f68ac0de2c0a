#!/usr/bin/env python3
"""
Binance Spot 연결 확인 스크립트

흐름:
1. 설정 로드 (환경 변수 / config/secrets.yaml)
2. 연결 확인 (ping) 및 서버 시간
3. 현재가 조회
4. 잔고 조회 (API 키가 있는 경우)
5. 테스트 주문 검증 (--test-order, 체결 없음)
6. aggTrade 스트림 수신 (--stream 초 동안)
"""

import argparse
import asyncio
import logging
import sys
from decimal import Decimal
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from adapters.binance.api import BinanceApi
from adapters.binance.errors import BinanceError
from adapters.models import TradeEvent
from core.config.loader import SecretsLoadError, get_settings
from core.logging import setup_logging
from core.types import OrderMode

logger = logging.getLogger("check_connection")


async def check_stream(api: BinanceApi, symbol: str, seconds: float) -> int:
    """aggTrade 스트림을 지정 시간 동안 수신

    Returns:
        수신한 이벤트 수
    """
    received: list[TradeEvent] = []

    async def on_event(event: TradeEvent) -> None:
        received.append(event)
        if len(received) <= 3:
            logger.info(f"    - {event.symbol} {event.price} x {event.quantity} (id: {event.agg_trade_id})")

    async def on_error(error: Exception) -> None:
        logger.warning(f"  - 스트림 종료: {error}")

    stream = await api.subscribe_agg_trades(symbol, on_event, on_error)
    try:
        await asyncio.sleep(seconds)
    finally:
        await stream.stop()

    return len(received)


async def main(args: argparse.Namespace) -> int:
    """메인 함수

    Returns:
        종료 코드 (0: 성공, 1: 실패)
    """
    logger.info("=" * 60)
    logger.info("Binance Spot 연결 확인 시작")
    logger.info("=" * 60)

    try:
        # =====================================================================
        # 1. 설정 로드
        # =====================================================================
        logger.info("")
        logger.info("[Step 1] 설정 로드")

        settings = get_settings()
        exchange_config = settings.exchange_config
        authenticated = not settings.credentials.is_empty

        logger.info(f"  - mode: {settings.mode.value}")
        logger.info(f"  - REST URL: {exchange_config.rest_url}")
        logger.info(f"  - WS URL: {exchange_config.ws_url}")
        logger.info(f"  - API 키: {'있음' if authenticated else '없음 (공개 엔드포인트만)'}")

        async with await BinanceApi.create(exchange_config) as api:
            # =================================================================
            # 2. 연결 확인
            # =================================================================
            logger.info("")
            logger.info("[Step 2] 연결 확인")

            await api.rest_client.ping()
            server_time = await api.rest_client.get_server_time()
            logger.info(f"  - ping 성공, 서버 시간: {server_time}")
            logger.info(f"  - 시간 오프셋: {api.rest_client.time_offset}ms")

            # =================================================================
            # 3. 현재가 조회
            # =================================================================
            logger.info("")
            logger.info("[Step 3] 현재가 조회")

            price = await api.market.get_ticker_price(args.symbol)
            if not price:
                logger.warning(f"  - {args.symbol} 심볼을 찾을 수 없습니다")
                return 1
            logger.info(f"  - {args.symbol}: {price}")

            lot_size = await api.market.get_lot_size(args.symbol)
            logger.info(
                f"  - LOT_SIZE: min={lot_size.min_qty}, max={lot_size.max_qty}, step={lot_size.step_size}"
            )

            # =================================================================
            # 4. 잔고 조회
            # =================================================================
            if authenticated:
                logger.info("")
                logger.info("[Step 4] 잔고 조회")

                balances = await api.trading.get_balances()
                logger.info(f"  - 조회된 자산: {len(balances)}개")
                for b in balances:
                    logger.info(f"    - {b.asset}: free={b.free}, locked={b.locked}")
            else:
                logger.info("")
                logger.info("[Step 4] 잔고 조회 생략 (API 키 없음)")

            # =================================================================
            # 5. 테스트 주문
            # =================================================================
            if args.test_order:
                logger.info("")
                logger.info("[Step 5] 테스트 주문 검증 (체결 없음)")

                if not authenticated:
                    logger.error("  - 테스트 주문에는 API 키가 필요합니다")
                    return 1

                await api.trading.place_market_quote_order(
                    "BUY",
                    args.symbol,
                    Decimal(args.quote_amount),
                    mode=OrderMode.TEST,
                )
                logger.info(f"  - {args.symbol} 시장가 매수 {args.quote_amount} 검증 통과")

            # =================================================================
            # 6. 스트림 수신
            # =================================================================
            if args.stream > 0:
                logger.info("")
                logger.info(f"[Step 6] aggTrade 스트림 수신 ({args.stream}초)")

                count = await check_stream(api, args.symbol, args.stream)
                logger.info(f"  - 수신 이벤트: {count}개")

        logger.info("")
        logger.info("=" * 60)
        logger.info("연결 확인 완료!")
        logger.info("=" * 60)
        return 0

    except SecretsLoadError as e:
        logger.error(f"설정 파일 오류: {e}")
        logger.error("config/secrets.yaml 형식을 확인해주세요.")
        return 1

    except BinanceError as e:
        logger.error(f"Binance 오류: {e}")
        logger.exception("상세 오류:")
        return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Binance Spot 연결 확인")
    parser.add_argument("--symbol", default="BTCUSDT", help="조회할 심볼 (기본: BTCUSDT)")
    parser.add_argument(
        "--test-order",
        action="store_true",
        help="테스트 주문 엔드포인트로 시장가 매수 검증",
    )
    parser.add_argument(
        "--quote-amount",
        default="10",
        help="테스트 주문 금액 (호가 자산, 기본: 10)",
    )
    parser.add_argument(
        "--stream",
        type=float,
        default=0,
        help="aggTrade 스트림 수신 시간 (초, 0이면 생략)",
    )
    args = parser.parse_args()

    setup_logging("check_connection")
    sys.exit(asyncio.run(main(args)))
