"""Validating admission webhook for builder templates."""

from dataclasses import dataclass

from sanic import HTTPResponse, Request, json
from sanic_ext import validate

from s2i_operator.base_api.blueprint import BlueprintFactoryResponse, CustomBlueprint
from s2i_operator.s2i.admission import AdmissionReview, review_template


@dataclass(kw_only=True)
class AdmissionWebhookBP(CustomBlueprint):
    """Handlers for admission reviews sent by the api server."""

    def post_validate_template(self) -> BlueprintFactoryResponse:
        """Allow or deny the creation or update of a builder template."""

        @validate(json=AdmissionReview)
        async def _post_validate_template(_: Request, body: AdmissionReview) -> HTTPResponse:
            return json(review_template(body))

        return "/validate-devops-kubesphere-io-v1alpha1-s2ibuildertemplate", ["POST"], _post_validate_template
