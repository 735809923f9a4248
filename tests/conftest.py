"""Sample Kraken payloads shared by the tests."""

import pytest


@pytest.fixture
def ticker_payload():
    return {
        "a": ["30000.10000", "1", "1.000"],
        "b": ["29999.90000", "2", "2.000"],
        "c": ["30000.00000", "0.00100000"],
        "v": ["100.10000000", "200.20000000"],
        "p": ["29950.10000", "29900.20000"],
        "t": [1500, 3000],
        "l": ["29000.00000", "28900.00000"],
        "h": ["30500.00000", "30600.00000"],
        "o": "30000.1",
    }


@pytest.fixture
def order_payload():
    return {
        "refid": None,
        "userref": 0,
        "status": "open",
        "opentm": 1688666559.8974,
        "starttm": 0,
        "expiretm": 0,
        "descr": {
            "pair": "XBTUSD",
            "type": "buy",
            "ordertype": "stop-loss-limit",
            "price": "30010.0",
            "price2": "30000.0",
            "leverage": "none",
            "order": "buy 1.25000000 XBTUSD @ stop loss 30010.0 -> limit 30000.0",
            "close": "",
        },
        "vol": "1.25000000",
        "vol_exec": "0.00000000",
        "cost": "0.00000",
        "fee": "0.00000",
        "price": "0.00000",
        "stopprice": "30010.00000",
        "limitprice": "0.00000",
        "misc": "",
        "oflags": "fciq",
    }


@pytest.fixture
def depth_payload():
    return {
        "XXBTZUSD": {
            "asks": [
                ["30384.10000", "2.059", 1688671659],
                ["30387.90000", "1.500", 1688671380],
            ],
            "bids": [
                ["30297.00000", "1.115", 1688671636],
            ],
        }
    }


@pytest.fixture
def ohlc_payload():
    return {
        "XXBTZUSD": [
            [1688671200, "30306.1", "30306.2", "30305.7", "30305.7", "30306.1", "3.39243896", 23],
            [1688671260, "30304.5", "30304.5", "30300.0", "30300.0", "30300.7", "4.42996871", 18],
        ],
        "last": 1688672160,
    }
