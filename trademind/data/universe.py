"""
종목 유니버스 모듈.

[ 역할 ]
    지수 구성 종목 목록(정적)을 제공하고, 선택된 지수들로부터 백테스트 대상 종목을 결정.

[ 선택 규칙 ]
    여러 지수를 고르면 가장 넓은 지수 하나의 구성 종목을 사용한다 (200 > 100 > 50).
    결과는 중복 없이 정렬된 리스트.

[ 호출하는 곳 ]
    - run_backtest.py에서 --index 옵션 처리
"""

NIFTY_50 = [
    "ADANIENT", "ADANIPORTS", "APOLLOHOSP", "ASIANPAINT", "AXISBANK",
    "BAJAJ-AUTO", "BAJAJFINSV", "BAJFINANCE", "BEL", "BHARTIARTL",
    "BPCL", "BRITANNIA", "CIPLA", "COALINDIA", "DRREDDY",
    "EICHERMOT", "GRASIM", "HCLTECH", "HDFCBANK", "HDFCLIFE",
    "HEROMOTOCO", "HINDALCO", "HINDUNILVR", "ICICIBANK", "INDUSINDBK",
    "INFY", "ITC", "JSWSTEEL", "KOTAKBANK", "LT",
    "M&M", "MARUTI", "NESTLEIND", "NTPC", "ONGC",
    "POWERGRID", "RELIANCE", "SBILIFE", "SBIN", "SHRIRAMFIN",
    "SUNPHARMA", "TATACONSUM", "TATAMOTORS", "TATASTEEL", "TCS",
    "TECHM", "TITAN", "TRENT", "ULTRACEMCO", "WIPRO",
]

NIFTY_NEXT_50 = [
    "ABB", "ADANIGREEN", "ADANIPOWER", "AMBUJACEM", "BAJAJHLDNG",
    "BANKBARODA", "BOSCHLTD", "CANBK", "CHOLAFIN", "DABUR",
    "DIVISLAB", "DLF", "DMART", "GAIL", "GODREJCP",
    "HAL", "HAVELLS", "ICICIGI", "ICICIPRULI", "INDIGO",
    "IOC", "IRCTC", "IRFC", "JINDALSTEL", "JIOFIN",
    "LICI", "LODHA", "LTIM", "NAUKRI", "PIDILITIND",
    "PFC", "PNB", "RECLTD", "SHREECEM", "SIEMENS",
    "TATAPOWER", "TORNTPHARM", "TVSMOTOR", "UNITDSPR", "VBL",
    "VEDL", "ZOMATO", "ZYDUSLIFE", "HINDZINC", "MOTHERSON",
    "NHPC", "ATGL", "COLPAL", "MARICO", "SRF",
]

NIFTY_100 = NIFTY_50 + NIFTY_NEXT_50

NIFTY_MIDCAP_SELECTION = [
    "ASHOKLEY", "AUBANK", "AUROPHARMA", "BALKRISIND", "BANDHANBNK",
    "BHARATFORG", "BHEL", "CONCOR", "CUMMINSIND", "FEDERALBNK",
    "GMRINFRA", "GODREJPROP", "IDFCFIRSTB", "INDHOTEL", "INDUSTOWER",
    "LUPIN", "MPHASIS", "MRF", "OBEROIRLTY", "PAGEIND",
    "PERSISTENT", "PETRONET", "POLYCAB", "SAIL", "TATACOMM",
    "TATAELXSI", "UPL", "VOLTAS", "YESBANK", "ZEEL",
]

NIFTY_200 = NIFTY_100 + NIFTY_MIDCAP_SELECTION

# 넓은 지수가 앞에 오도록 정렬된 (지수 이름, 구성 종목)
INDEX_MEMBERS: dict[str, list[str]] = {
    "NIFTY 200": NIFTY_200,
    "NIFTY 100": NIFTY_100,
    "NIFTY 50": NIFTY_50,
}


def list_indices() -> list[str]:
    return list(INDEX_MEMBERS.keys())


def resolve_universe(indices: list[str]) -> list[str]:
    """선택된 지수들에서 대상 종목 결정.

    Raises:
        ValueError: 알 수 없는 지수 이름
    """
    if not indices:
        return []

    selected = {name.strip().upper() for name in indices}
    unknown = selected - set(INDEX_MEMBERS)
    if unknown:
        available = ", ".join(INDEX_MEMBERS)
        raise ValueError(f"알 수 없는 지수: {', '.join(sorted(unknown))}. 사용 가능: {available}")

    for name, members in INDEX_MEMBERS.items():
        if name in selected:
            return sorted(set(members))
    return []
