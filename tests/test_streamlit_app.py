from streamlit.testing.v1 import AppTest

def _app():
    at = AppTest.from_file("../streamlit_app.py", default_timeout=30)
    at.run()
    return at

def test_app_starts_on_calculator():
    at = _app()
    assert not at.exception
    assert at.title[0].value.endswith("Irish Payroll")

def test_calculator_shows_deductions():
    at = _app()
    at.number_input[0].set_value(30000.0)
    at.number_input[1].set_value(3300.0)
    at.button[0].click().run()
    assert not at.exception
    metrics = {m.label: m.value for m in at.metric}
    assert metrics["PAYE"] == "€2,700.00"
    assert metrics["PRSI"] == "€1,200.00"

def test_band_page_lists_default_tables():
    at = _app()
    at.sidebar.radio[0].set_value("Tax Bands").run()
    assert not at.exception
    assert len(at.dataframe) == 1
