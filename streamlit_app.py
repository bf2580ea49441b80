from __future__ import annotations

import time

import streamlit as st

from funnel.app.config import get_settings
from funnel.client.api import DEFAULT_API_BASE_URL, FunnelApiClient, RegistrationTransport
from funnel.client.proceed import CheckoutInitiator, ProceedOption, ProceedOptions, estimated_amounts
from funnel.client.registration import RegistrationForm
from funnel.client.storage import LocalStore, StorageRegistry
from funnel.client.success import SuccessPage, SuccessPhase
from funnel.client.timers import ManualScheduler
from funnel.schemas.visitor import BUSINESS_TYPES, REFERRAL_SOURCES

st.set_page_config(page_title="Get Started", page_icon="🚀", layout="wide")

NOTICE_RENDERERS = {
    "success": st.success,
    "info": st.info,
    "warning": st.warning,
    "error": st.error,
}


@st.cache_resource
def _storage_registry() -> StorageRegistry:
    return StorageRegistry()


def _store() -> LocalStore:
    registry = _storage_registry()
    if "storage_key" not in st.session_state:
        # returning from checkout opens a new session
        st.session_state["storage_key"] = registry.find_by_checkout(st.query_params.get("session_id"))
    key, store = registry.open(st.session_state["storage_key"])
    st.session_state["storage_key"] = key
    return store


def _navigate(url: str) -> None:
    st.session_state["navigate_to"] = url


def _render_navigation() -> None:
    target = st.session_state.pop("navigate_to", None)
    if target:
        st.link_button("Continue", target)


def _registration_form() -> RegistrationForm:
    if "registration_form" not in st.session_state:
        settings = get_settings()
        st.session_state["registration_form"] = RegistrationForm(
            transport=RegistrationTransport(endpoint=settings.registration_endpoint),
            store=_store(),
        )
    return st.session_state["registration_form"]


def _register_step() -> None:
    st.header("Register Yourself")
    st.caption("Help us understand who you are, what you do, and what you might need.")
    form = _registration_form()

    if form.registered:
        st.success("Thank you for registering! We'll be in touch soon.")
        if st.button("Register Again?"):
            form.reset_registration()

    with st.form("register"):
        disabled = form.registered
        values = {
            "fullName": st.text_input("Full Name *", form.values["fullName"], disabled=disabled),
            "companyName": st.text_input("Company Name", form.values["companyName"], disabled=disabled),
            "businessEmail": st.text_input("Business Email *", form.values["businessEmail"], disabled=disabled),
            "phoneNumber": st.text_input("Phone Number", form.values["phoneNumber"], disabled=disabled),
            "companyWebsite": st.text_input("Company Website", form.values["companyWebsite"], disabled=disabled),
            "businessAddress": st.text_area("Business Address", form.values["businessAddress"], disabled=disabled),
            "businessType": st.selectbox(
                "Business Type", ("",) + BUSINESS_TYPES, disabled=disabled
            ),
            "referralSource": st.selectbox(
                "How did you hear about us?", ("",) + REFERRAL_SOURCES, disabled=disabled
            ),
        }
        submitted = st.form_submit_button("Register", disabled=form.is_registering)

    if submitted:
        for name, value in values.items():
            if value != form.values[name]:
                form.update(name, value)
        with st.spinner("Registering..."):
            form.submit()

    for field, message in form.validation_errors.items():
        if message:
            st.error(f"{field}: {message}")
    while form.notices:
        notice = form.notices.pop(0)
        NOTICE_RENDERERS.get(notice.level, st.info)(notice.message)


def _proceed_step() -> None:
    st.header("How would you like to proceed?")
    st.caption("Select how you'd like to proceed with your project.")
    if "proceed_options" not in st.session_state:
        initiator = CheckoutInitiator(
            api=FunnelApiClient(base_url=st.session_state.get("api_base_url", DEFAULT_API_BASE_URL)),
            store=_store(),
            navigate=_navigate,
            origin=st.session_state.get("site_origin", "http://localhost:8501"),
        )
        st.session_state["proceed_options"] = ProceedOptions(initiator)
    options: ProceedOptions = st.session_state["proceed_options"]

    base_amount, deposit = estimated_amounts()
    st.markdown(f"Project estimate: **\\${base_amount:,}**. Secure it with a 25% deposit of **\\${deposit:,}**.")

    labels = {option.label: option for option in ProceedOption}
    choice = st.radio("Options", list(labels), index=None)
    if choice:
        if options.selected is not labels[choice]:
            options.select(labels[choice])
        st.write(f"You confidently choose: **{choice}**")

    if options.error:
        st.error(options.error)

    if options.selected is ProceedOption.CONSULTATION:
        if st.button("Open calendar"):
            options.proceed()
            st.info("A team member will confirm your consultation slot by email.")
        return

    if st.button("Proceed", disabled=options.selected is None or options.processing):
        with st.spinner("Processing..."):
            result = options.proceed()
        if options.notice:
            st.warning(options.notice)
        if result and result.detail:
            st.link_button("Download quote", result.detail)
        if options.error:
            st.error(options.error)


def _success_step() -> None:
    st.header("Payment")
    session_id = st.query_params.get("session_id")
    if "success_page" not in st.session_state:
        scheduler = ManualScheduler()
        page = SuccessPage(session_id, store=_store(), scheduler=scheduler, navigate=_navigate)
        page.mount()
        st.session_state["success_page"] = page
        st.session_state["success_scheduler"] = scheduler
        st.session_state["success_clock"] = time.monotonic()
    page: SuccessPage = st.session_state["success_page"]
    scheduler: ManualScheduler = st.session_state["success_scheduler"]

    now = time.monotonic()
    scheduler.advance(now - st.session_state["success_clock"])
    st.session_state["success_clock"] = now

    if page.phase is SuccessPhase.VERIFYING:
        st.info("Verifying your payment...")
    elif page.phase is SuccessPhase.FAILED:
        st.error("We couldn't verify your payment.")
        if st.button("Return to Get Started"):
            page.return_to_start()
    else:
        visitor = page.visitor or {}
        st.success(f"Welcome to the team, {visitor.get('fullName', '')}! Your project is now secured.")
        if page.payment:
            st.json(page.payment)
        if page.phase is SuccessPhase.VERIFIED:
            st.write(f"You'll be automatically redirected to your client dashboard in {page.countdown} seconds.")
            if st.button("Go to dashboard now"):
                page.redirect_now()

    _render_navigation()
    if page.phase in (SuccessPhase.VERIFYING, SuccessPhase.VERIFIED):
        time.sleep(1)
        st.rerun()


def _sidebar_controls() -> None:
    st.sidebar.title("Session Settings")
    st.session_state["api_base_url"] = st.sidebar.text_input(
        "API base URL",
        st.session_state.get("api_base_url", DEFAULT_API_BASE_URL),
    )
    st.session_state["site_origin"] = st.sidebar.text_input(
        "Site origin",
        st.session_state.get("site_origin", "http://localhost:8501"),
    )
    if st.sidebar.button("Reset funnel"):
        page = st.session_state.get("success_page")
        if page is not None:
            page.unmount()
        storage_key = st.session_state.get("storage_key")
        if storage_key:
            _storage_registry().discard(storage_key)
        for key in ("registration_form", "proceed_options", "success_page", "success_scheduler", "storage_key"):
            st.session_state.pop(key, None)
        st.rerun()


def main() -> None:
    _sidebar_controls()
    if st.query_params.get("session_id"):
        _success_step()
        return
    tab_register, tab_proceed, tab_success = st.tabs(["Register", "Proceed", "Payment success"])
    with tab_register:
        _register_step()
    with tab_proceed:
        _proceed_step()
    with tab_success:
        _success_step()


if __name__ == "__main__":
    main()
