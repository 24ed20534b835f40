"""
Streamlit Frontend for Household Balances

Shows a member who owes whom, and lets them record a payment.

DESIGN PRINCIPLES:
1. Balances are always recomputed from the ledger, never stored
2. One household, one viewer at a time
3. Clear error messages; a failed fetch never shows stale numbers as fresh
4. Nothing is written without an explicit "Record payment" action
"""

import asyncio
from decimal import Decimal

import streamlit as st

from household_balances.audit import configure_logging, create_correlation_id
from household_balances.balances import (
    BalanceFetchError,
    BalanceService,
    SettlementError,
    SettlementService,
    clamp_payment,
)
from household_balances.config import get_settings, validate_all_settings
from household_balances.models.ledger import Balance, HouseholdBalances
from household_balances.orchestrator import create_app_components


# Page configuration
st.set_page_config(
    page_title="Household Balances",
    page_icon="💸",
    layout="centered",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .owed-box {
        padding: 20px;
        background-color: #d4edda;
        border-radius: 10px;
        border-left: 5px solid #28a745;
        margin: 10px 0;
    }
    .owes-box {
        padding: 20px;
        background-color: #f8d7da;
        border-radius: 10px;
        border-left: 5px solid #dc3545;
        margin: 10px 0;
    }
    .info-box {
        padding: 20px;
        background-color: #cce5ff;
        border-radius: 10px;
        border-left: 5px solid #004085;
        margin: 10px 0;
    }
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def money(amount: Decimal) -> str:
    symbol = get_settings().app.currency_symbol
    return f"{symbol}{abs(amount):,.2f}"


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    configure_logging(get_settings().app.log_level)
    return create_app_components(use_storage=True)


@st.cache_data(ttl=get_settings().app.balance_cache_ttl_seconds, show_spinner=False)
def load_household(_service: BalanceService, household_id: str) -> HouseholdBalances:
    """Fetch and compute a household's balances, cached briefly."""
    return run_async(
        _service.get_household_balances(
            household_id, correlation_id=create_correlation_id()
        )
    )


def main():
    """Main application entry point."""
    balance_service, settlement_service, sheets_client = get_components()
    settings = get_settings()

    st.sidebar.title("💸 Household Balances")
    st.sidebar.markdown("---")

    household_id = st.sidebar.text_input(
        "Household",
        value=settings.app.default_household_id or "",
    ).strip()

    if sheets_client is None:
        st.sidebar.warning("Google Sheets not configured. Using an empty local ledger.")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Balances", "⚙️ Settings"],
        index=0,
    )

    if page == "⚙️ Settings":
        render_settings_page()
        return

    if not household_id:
        st.info("Enter a household to see its balances.")
        return

    try:
        household = load_household(balance_service, household_id)
    except BalanceFetchError as e:
        st.error(f"Couldn't load balances: {e}")
        if st.button("🔄 Try again"):
            load_household.clear()
            st.rerun()
        return

    if not household.members:
        st.info("This household has no members yet.")
        return

    viewer = st.sidebar.selectbox(
        "Viewing as",
        options=household.members,
        format_func=lambda m: m.full_name or m.id,
    )

    render_balances_page(household, viewer.id, settlement_service)


def render_balances_page(
    household: HouseholdBalances,
    viewer_id: str,
    settlement_service: SettlementService,
):
    """Render one member's balances and the payment form."""
    st.title("📊 Balances")
    summary = household.for_viewer(viewer_id)

    if summary.net_balance > 0:
        st.markdown(f"""
        <div class="owed-box">
            <p>You are owed overall</p>
            <p class="big-number">{money(summary.net_balance)}</p>
        </div>
        """, unsafe_allow_html=True)
    elif summary.net_balance < 0:
        st.markdown(f"""
        <div class="owes-box">
            <p>You owe overall</p>
            <p class="big-number">{money(summary.net_balance)}</p>
        </div>
        """, unsafe_allow_html=True)

    if summary.is_settled_up:
        st.markdown("""
        <div class="info-box">
            <h4>🎉 All settled up</h4>
            <p>Nobody in this household owes you, and you owe nobody.</p>
        </div>
        """, unsafe_allow_html=True)
        return

    for balance in summary.balances:
        render_balance(household, balance, viewer_id, settlement_service)

    st.caption(f"Computed at {household.computed_at:%Y-%m-%d %H:%M} UTC")


def render_balance(
    household: HouseholdBalances,
    balance: Balance,
    viewer_id: str,
    settlement_service: SettlementService,
):
    """Render one balance row, with a payment form when the viewer owes."""
    expenses = balance.expense_count
    plural = "expense" if expenses == 1 else "expenses"

    with st.container(border=True):
        if balance.from_user.id == viewer_id:
            st.markdown(
                f"**You owe {balance.to_user.full_name}** {money(balance.amount)}"
            )
        else:
            st.markdown(
                f"**{balance.from_user.full_name} owes you** {money(balance.amount)}"
            )
        st.caption(f"from {expenses} {plural}")

        if balance.from_user.id != viewer_id:
            return

        if balance.payment_link:
            st.link_button("💳 Pay", balance.payment_link)

        with st.expander("✅ Record a payment"):
            render_payment_form(balance, settlement_service)


def render_payment_form(balance: Balance, settlement_service: SettlementService):
    """Record that the viewer paid (part of) a balance outside the app."""
    key = f"{balance.from_user.id}:{balance.to_user.id}"

    with st.form(key=f"pay-{key}"):
        amount = st.number_input(
            "Amount paid",
            min_value=0.01,
            max_value=float(balance.amount),
            value=float(balance.amount),
            step=0.01,
            format="%.2f",
        )
        note = st.text_input("Note (optional)", max_chars=500)
        submitted = st.form_submit_button("Record payment", type="primary")

    if not submitted:
        return

    try:
        plan = run_async(
            settlement_service.settle_payment(
                balance,
                clamp_payment(balance, amount),
                note=note or None,
                correlation_id=create_correlation_id(),
            )
        )
    except SettlementError as e:
        st.error(f"Payment not recorded: {e}")
        return

    st.success(
        f"Recorded {money(plan.amount)} to {balance.to_user.full_name} "
        f"({len(plan.updates)} split(s) updated)"
    )
    load_household.clear()
    st.rerun()


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Google Sheets (Storage)", "google_sheets"),
        ("Application", "app"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your "
        "Google Sheets credentials path and spreadsheet id. "
        "See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
