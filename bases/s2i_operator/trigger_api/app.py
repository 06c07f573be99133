"""Webhook server app."""

from sanic import Sanic

from s2i_operator.admission_webhook.blueprints import AdmissionWebhookBP
from s2i_operator.base_api.error_handler import CustomErrorHandler
from s2i_operator.base_api.misc import MiscBP
from s2i_operator.trigger.blueprints import GithubTriggerBP
from s2i_operator.trigger_api.dependencies import DependencyManager


def register_all_handlers(app: Sanic, dm: DependencyManager) -> Sanic:
    """Register all handlers on the application."""
    github_trigger = GithubTriggerBP(
        name="github_trigger",
        url_prefix="/s2itrigger/v1alpha1/github",
        trigger=dm.trigger,
    )
    admission = AdmissionWebhookBP(name="admission_webhook")
    misc = MiscBP(name="misc", version=dm.config.version)
    app.blueprint([github_trigger.blueprint(), admission.blueprint(), misc.blueprint()])

    app.error_handler = CustomErrorHandler()
    app.config.OAS = False
    app.config.OAS_UI_REDOC = False
    app.config.OAS_UI_SWAGGER = False
    app.config.OAS_AUTODOC = False
    return app
