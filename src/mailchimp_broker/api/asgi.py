"""ASGI entrypoint for the Mailchimp broker API."""

from mailchimp_broker.api.app import create_app
from mailchimp_broker.containers import build_container

app = create_app(build_container())
