"""Industry classification for held symbols.

US symbols are looked up in a fixed map of common holdings. Taiwan symbols
are classified by TWSE/TPEx code range, with a few large caps pinned.
"""

from libao.models import Market

SEMICONDUCTOR = "半導體 (Semiconductor)"
TECHNOLOGY = "科技 (Technology)"
COMM = "通訊服務 (Comm)"
CONSUMER = "非必需消費 (Consumer)"
STAPLES = "必需消費 (Staples)"
FINANCIAL = "金融 (Financial)"
HEALTH = "醫療保健 (Health)"
ELECTRONICS = "電子 (Electronics)"
SHIPPING = "航運 (Shipping)"
CONSTRUCTION = "營建 (Construction)"
BROAD_ETF = "大盤 ETF"
DIVIDEND_ETF = "高股息 ETF"
OTHER = "其他 (Other)"

US_INDUSTRIES = {
    "AAPL": TECHNOLOGY,
    "MSFT": TECHNOLOGY,
    "NVDA": SEMICONDUCTOR,
    "TSM": SEMICONDUCTOR,
    "AMD": SEMICONDUCTOR,
    "INTC": SEMICONDUCTOR,
    "AVGO": SEMICONDUCTOR,
    "QCOM": SEMICONDUCTOR,
    "TXN": SEMICONDUCTOR,
    "MU": SEMICONDUCTOR,
    "AMAT": SEMICONDUCTOR,
    "LRCX": SEMICONDUCTOR,
    "ARM": SEMICONDUCTOR,
    "SMH": "ETF (Semi)",
    "SOXX": "ETF (Semi)",
    "SOXL": "ETF (Semi)",
    "GOOGL": COMM,
    "GOOG": COMM,
    "META": COMM,
    "NFLX": COMM,
    "DIS": COMM,
    "AMZN": CONSUMER,
    "TSLA": CONSUMER,
    "MCD": CONSUMER,
    "NKE": CONSUMER,
    "SBUX": CONSUMER,
    "COST": STAPLES,
    "WMT": STAPLES,
    "TGT": STAPLES,
    "PG": STAPLES,
    "KO": STAPLES,
    "PEP": STAPLES,
    "JPM": FINANCIAL,
    "BAC": FINANCIAL,
    "V": FINANCIAL,
    "MA": FINANCIAL,
    "WFC": FINANCIAL,
    "GS": FINANCIAL,
    "BRK.B": FINANCIAL,
    "COIN": "金融 (Crypto)",
    "LLY": HEALTH,
    "UNH": HEALTH,
    "JNJ": HEALTH,
    "PFE": HEALTH,
    "MRK": HEALTH,
    "ABBV": HEALTH,
    "SPY": BROAD_ETF,
    "VOO": BROAD_ETF,
    "IVV": BROAD_ETF,
    "QQQ": BROAD_ETF,
    "TQQQ": BROAD_ETF,
    "SQQQ": BROAD_ETF,
    "VTI": "全市場 ETF",
    "VT": "全市場 ETF",
    "TLT": "債券 ETF",
    "SCHD": DIVIDEND_ETF,
    "JEPI": DIVIDEND_ETF,
    "ARKK": "創新 ETF",
}

TW_PINNED = {
    **{code: SEMICONDUCTOR for code in ("2330", "2454", "2303", "2379", "3034", "3711", "3008")},
    **{code: SHIPPING for code in ("2603", "2609", "2615")},
    **{code: FINANCIAL for code in ("2881", "2882", "2891", "2886", "2884")},
}

# Two-digit code prefix -> industry
TW_PREFIXES = {
    "11": "水泥 (Cement)",
    "12": "食品 (Food)",
    "13": "塑膠/化學 (Plastic)",
    "14": "紡織 (Textile)",
    "15": "電機機械 (Electric)",
    "16": "電器電纜 (Cable)",
    "17": "生技/化學 (Biotech)",
    "20": "鋼鐵 (Steel)",
    "21": "橡膠 (Rubber)",
    "22": "汽車 (Auto)",
    "23": ELECTRONICS,
    "24": ELECTRONICS,
    "25": CONSTRUCTION,
    "26": SHIPPING,
    "27": "觀光 (Tourism)",
    "28": FINANCIAL,
    "29": "貿易百貨 (Retail)",
    "30": ELECTRONICS,
    "31": "電子/生技 (OTC)",
    "32": "電子/生技 (OTC)",
    "33": ELECTRONICS,
    "34": ELECTRONICS,
    "35": ELECTRONICS,
    "36": ELECTRONICS,
    "37": ELECTRONICS,
    "41": "生技 (Biotech)",
    "47": "化學生技 (Chemical)",
    "49": "通訊網路 (Comm)",
    "52": ELECTRONICS,
    "53": ELECTRONICS,
    "55": CONSTRUCTION,
    "58": FINANCIAL,
    "61": ELECTRONICS,
    "62": ELECTRONICS,
    "64": "生技/電子",
    "65": "生技/電子",
    "80": ELECTRONICS,
}


def get_industry(symbol: str, market: Market) -> str:
    """
    Classify a symbol into an industry label.

    Args:
        symbol: Stock symbol
        market: Market the symbol trades in

    Returns:
        Industry label (never empty)

    Examples:
        >>> get_industry("2330", Market.TW)
        '半導體 (Semiconductor)'
        >>> get_industry("0050", Market.TW)
        'ETF'
    """
    symbol = symbol.upper()

    if market == Market.US:
        if symbol in US_INDUSTRIES:
            return US_INDUSTRIES[symbol]
        if len(symbol) <= 4 and "." not in symbol:
            return "美股其他 (US Other)"
        return "美股 ETF/其他"

    if symbol.startswith("00"):
        return "ETF"
    if symbol in TW_PINNED:
        return TW_PINNED[symbol]
    return TW_PREFIXES.get(symbol[:2], OTHER)
