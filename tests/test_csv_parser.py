from datetime import datetime

import pytest

from chartdesk.data.bars import Bar
from chartdesk.data.csv_parser import parse_bars, parse_date, parse_number, parse_report, read_upload
from chartdesk.errors import DateFormatError, InvalidFileTypeError, StructuralError


def test_example_file_yields_two_sorted_bars(sample_csv):
    bars = parse_bars(sample_csv)
    assert len(bars) == 2
    assert [b.date for b in bars] == [datetime(2024, 2, 1), datetime(2024, 2, 2)]
    assert [b.date_str for b in bars] == ["01-02-2024", "02-02-2024"]
    assert (bars[0].open, bars[0].high, bars[0].low, bars[0].close, bars[0].volume) == (100, 110, 95, 105, 1000)


def test_ambiguous_dates_are_read_day_first():
    # current behaviour: the first group is the day even when it could be a month
    assert parse_date("01-02-2024") == datetime(2024, 2, 1)
    assert parse_date("02/01/2024") == datetime(2024, 1, 2)
    assert parse_date("13-01-2024") == datetime(2024, 1, 13)


def test_month_first_date_with_day_over_12_is_rejected():
    with pytest.raises(DateFormatError):
        parse_date("01-13-2024")


def test_iso_date():
    assert parse_date("2024-03-15") == datetime(2024, 3, 15)


@pytest.mark.parametrize("bad", ["2024/03/15", "15-3-2024", "yesterday", ""])
def test_unknown_date_literal(bad):
    with pytest.raises(DateFormatError):
        parse_date(bad)


def test_parse_number_formats():
    assert parse_number("1.03E+06") == 1030000.0
    assert parse_number(" 1.5 ") == 1.5
    assert parse_number("-2e-3") == -0.002
    for bad in ["", "   ", "abc", "inf", "NaN", "1_000", None]:
        assert parse_number(bad) != parse_number(bad)  # NaN


def test_tab_delimiter_and_header_order():
    text = (
        "VOLUME\tclose\tLow\tHigh\tOpen\tDATE\n"
        "1.2E+03\t12\t9\t13\t10\t2024-01-05\n"
    )
    [bar] = parse_bars(text)
    assert (bar.open, bar.high, bar.low, bar.close, bar.volume) == (10, 13, 9, 12, 1200)
    assert bar.date == datetime(2024, 1, 5)


def test_bad_rows_are_dropped_and_reported(caplog):
    text = (
        "date,open,high,low,close,volume\n"
        "2024-01-01,10,12,9,11,100\n"
        "not-a-date,10,12,9,11,100\n"
        "2024-01-03,10,9,9,11,100\n"      # high below close
        "2024-01-04,10,12,9,,100\n"       # empty close
        "2024-01-05,10,12,9,11,inf\n"
        "2024-01-06,10,12\n"              # short row
        "2024-01-07,10,12,9,11,100\n"
    )
    report = parse_report(text)
    assert [b.date_str for b in report.bars] == ["2024-01-01", "2024-01-07"]
    assert report.dropped_count == 5
    assert [d.line_no for d in report.dropped] == [2, 3, 4, 5, 6]
    assert "Skipping invalid row" in caplog.text


def test_accepted_bars_satisfy_price_invariants():
    text = (
        "date,open,high,low,close,volume\n"
        "2024-01-01,10,12,9,11,100\n"
        "2024-01-02,10,12,10.5,11,100\n"  # low above open
        "2024-01-03,10,10,10,10,0\n"
    )
    bars = parse_bars(text)
    assert len(bars) == 2
    for b in bars:
        assert b.high >= max(b.open, b.close, b.low)
        assert b.low <= min(b.open, b.close, b.high)


def test_output_sorted_and_stable():
    text = (
        "date,open,high,low,close,volume\n"
        "2024-01-03,1,1,1,1,1\n"
        "2024-01-01,2,2,2,2,1\n"
        "01-01-2024,3,3,3,3,1\n"
        "2024-01-02,4,4,4,4,1\n"
    )
    bars = parse_bars(text)
    assert [b.close for b in bars] == [2, 3, 4, 1]
    assert all(a.date <= b.date for a, b in zip(bars, bars[1:]))


def test_optional_oscillator_columns():
    text = (
        "date,open,high,low,close,volume,RSI14,MACD,MacdSignal,macdhist\n"
        "2024-01-01,10,12,9,11,100,55.5,0.001,0.002,-0.001\n"
        "2024-01-02,10,12,9,11,100,,abc,0.003,\n"
    )
    first, second = parse_bars(text)
    assert (first.rsi14, first.macd, first.macd_signal, first.macd_hist) == (55.5, 0.001, 0.002, -0.001)
    assert second.rsi14 is None and second.macd is None and second.macd_hist is None
    assert second.macd_signal == 0.003
    assert "rsi14" not in second.model_dump(exclude_none=True)


def test_too_few_lines():
    with pytest.raises(StructuralError):
        parse_bars("date,open,high,low,close,volume\n\n   \n")


def test_missing_required_column():
    with pytest.raises(StructuralError, match="volume"):
        parse_bars("date,open,high,low,close\n2024-01-01,1,1,1,1\n")


def test_windows_line_endings():
    text = "date,open,high,low,close,volume\r\n2024-01-01,10,12,9,11,100\r\n"
    assert len(parse_bars(text)) == 1


def test_read_upload_rejects_non_csv(sample_csv):
    with pytest.raises(InvalidFileTypeError):
        read_upload("prices.xlsx", sample_csv)


def test_read_upload_symbol(sample_csv):
    upload = read_upload("aapl.CSV", sample_csv)
    assert upload.symbol == "AAPL"
    assert len(upload.report.bars) == 2


def test_bar_rejects_broken_invariants():
    with pytest.raises(ValueError):
        Bar(date=datetime(2024, 1, 1), date_str="x", open=10, high=9, low=8, close=9.5, volume=1)
    with pytest.raises(ValueError):
        Bar(date=datetime(2024, 1, 1), date_str="x", open=10, high=11, low=9, close=10, volume=-1)


def test_quoted_export():
    text = (
        '"Date","Open","High","Low","Close","Volume"\n'
        '"2024-01-02","10.5","12","9.25","11","1,200"\n'
        '"2024-01-03","11","12.5","10","12","1300"\n'
    )
    report = parse_report(text)
    # thousands separators are not numbers
    assert [b.date_str for b in report.bars] == ["2024-01-03"]
    assert report.dropped[0].line_no == 1
    assert report.bars[0].low == 10


def test_utf8_bom_is_ignored():
    text = "\ufeffDate,Open,High,Low,Close,Volume\n2024-01-01,10,12,9,11,100\n"
    [bar] = parse_bars(text)
    assert bar.date == datetime(2024, 1, 1)
    assert bar.volume == 100


def test_extra_cells_are_ignored():
    text = (
        "date,open,high,low,close,volume\n"
        "2024-01-01,10,12,9,11,100,note\n"
        "2024-01-02,10,12,9,11,100\n"
    )
    bars = parse_bars(text)
    assert [b.date_str for b in bars] == ["2024-01-01", "2024-01-02"]
    assert bars[0].volume == 100
