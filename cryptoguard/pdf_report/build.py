from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from reportlab.lib.colors import black, green, red, yellow
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from ..models import ProjectDetails, RiskLevel, ScanResult, WalletDetails

WEI_PER_ETH = Decimal(10) ** 18


def risk_color(level: RiskLevel):
    return {RiskLevel.HIGH: red, RiskLevel.MEDIUM: yellow}.get(level, green)


def _eth(wei: str) -> str:
    try:
        return format((Decimal(wei) / WEI_PER_ETH).quantize(Decimal("0.0001")), ",f")
    except (InvalidOperation, ValueError):
        return "0.0000"


def _text(s: str) -> str:
    # fuentes estándar: sólo latin-1 (los emojis se descartan)
    return s.encode("latin-1", "ignore").decode("latin-1").strip()


def _line(c, y, step=16):
    """Move the cursor down, starting a new page when needed."""
    if y < 80:
        c.showPage()
        c.setFont("Helvetica", 12)
        return A4[1] - 60
    return y - step


def _section(c, y, title):
    y = _line(c, y, 10)
    c.setFont("Helvetica-Bold", 12); c.drawString(40, y, title); y = _line(c, y, 18)
    c.setFont("Helvetica", 11)
    return y


def _wallet_lines(d: WalletDetails):
    w = d.wallet
    yield f"Balance: {_eth(w.balance)} ETH"
    yield f"Fetched transactions: {w.total_tx_count}"
    yield f"Last active: {datetime.fromtimestamp(w.last_active, tz=timezone.utc):%Y-%m-%d %H:%M} UTC"
    for t in w.token_balances:
        yield f"{t.token_symbol}: {t.balance} (raw, {t.token_decimal} decimals)"
    if w.profit_loss:
        yield (f"Inflow: {w.profit_loss.total_profit} ETH  Outflow: {w.profit_loss.total_loss} ETH  "
               f"Net: {w.profit_loss.net_position} ETH")
    if w.gas_tracker:
        g = w.gas_tracker
        yield f"Gas (gwei): low {g.low} / medium {g.medium} / high {g.high}"


def _project_lines(d: ProjectDetails):
    if d.contract:
        c = d.contract
        yield f"Contract verified: {'yes' if c.is_verified else 'no'}"
        if c.contract_name:
            yield f"Contract name: {c.contract_name} ({c.compiler or 'unknown compiler'})"
        yield f"Balance: {_eth(c.balance)} ETH  Tx count: {c.tx_count}"
        if c.token_info and c.token_info.symbol:
            yield f"Token: {c.token_info.name or ''} ({c.token_info.symbol}) holders: {c.token_info.holders or 'n/a'}"
    if d.website:
        s = d.website
        yield f"Website score: {s.score} / 100"
        if s.details.social_links:
            yield f"Social links: {', '.join(s.details.social_links)}"
    if d.phishing_status:
        p = d.phishing_status
        yield f"Phishing: {'yes' if p.is_phishing else 'no'} (confidence {p.confidence}%)"


def build_pdf(result: ScanResult, out_path: str):
    c = canvas.Canvas(out_path, pagesize=A4)
    w, h = A4

    c.setFont("Helvetica-Bold", 18)
    c.drawString(40, h-60, "CryptoGuard Risk Report")

    c.setFont("Helvetica", 12)
    y = h-90
    c.drawString(40, y, _text(f"Target: {result.target}")[:100]); y = _line(c, y, 15)
    c.drawString(40, y, f"Scanned: {result.timestamp:%Y-%m-%d %H:%M} UTC"); y = _line(c, y, 15)
    c.drawString(40, y, f"Risk Score: {result.score} / 100"); y = _line(c, y, 15)

    bar_h = 15
    c.setFillColor(risk_color(result.risk))
    c.rect(40, y-14, width=max(0, min(100, result.score)) * 4, height=bar_h, fill=1, stroke=0)
    c.setFillColor(black); y = _line(c, y, 30)
    c.drawString(40, y, f"Risk Level: {result.risk.value.capitalize()}"); y = _line(c, y, 24)

    y = _section(c, y, "Issues")
    for issue in result.issues or ["None"]:
        c.drawString(50, y, _text(f"- {issue}")[:110]); y = _line(c, y, 16)

    details = result.details
    if isinstance(details, WalletDetails):
        lines = _wallet_lines(details)
    elif isinstance(details, ProjectDetails):
        lines = _project_lines(details)
    else:
        lines = ()

    y = _section(c, y, "Details")
    for line in lines:
        c.drawString(50, y, _text(line)[:110]); y = _line(c, y, 16)

    c.showPage()
    c.save()
