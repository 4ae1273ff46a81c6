"""Retrieve institutions, accounts and transactions from the aggregation service."""

from __future__ import annotations

import enum
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from http import HTTPStatus
from importlib.resources import files
from typing import TYPE_CHECKING, cast
from urllib.parse import quote

from .aggcat_models import InstitutionRespModel
from .errors import (
    InstitutionNotFoundError,
    MalformedInstitutionMetadataError,
    TransportError,
    UnexpectedResponseShapeError,
    validate_required,
)
from .xml_parser import parse_xml


if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from datetime import date

    from .config import AggcatConfig
    from .transport import Transport, TransportResponse

import pystache  # pyright: ignore[reportMissingTypeStubs]
from pydantic import ValidationError


logger = logging.getLogger(__name__)

LOGIN_NAMESPACE = "http://schema.intuit.com/platform/fdatafeed/institutionlogin/v1"
CHALLENGE_NAMESPACE = "http://schema.intuit.com/platform/fdatafeed/challenge/v1"
DATE_FORMAT = "%Y-%m-%d"

CHALLENGE_SESSION_HEADER = "challengeSessionId"
CHALLENGE_NODE_HEADER = "challengeNodeId"
XML_CONTENT_TYPE = {"Content-Type": "application/xml"}


@dataclass(frozen=True)
class InstitutionField:
    """Credential field an institution asks for."""

    name: str
    """Field name to echo back in the login document."""
    display_order: int
    """Position of the field; the lowest takes the username."""


@dataclass(frozen=True)
class ChallengeState:
    """Correlation ids of a pending challenge. Echo back with the answer."""

    session_id: str
    node_id: str


class LoginState(enum.Enum):
    """Outcome of a login or confirmation request."""

    COMPLETED = "completed"
    CHALLENGE_PENDING = "challenge_pending"


@dataclass(frozen=True)
class Result:
    """Response to any aggregation service request."""

    response_code: int
    """HTTP status code."""
    response: dict[str, object] | None
    """Parsed XML body, keyed by snake_case tag names."""
    challenge: ChallengeState | None = None
    """Present iff the service asked for a challenge answer."""

    @property
    def state(self) -> LoginState:
        """`CHALLENGE_PENDING` if the caller must answer a challenge."""
        if self.challenge is None:
            return LoginState.COMPLETED
        return LoginState.CHALLENGE_PENDING

    def envelope(self) -> dict[str, object]:
        """Return the result as a plain mapping.

        Returns:
            `responseCode` and `response`, plus `challengeSessionId` and
            `challengeNodeId` when a challenge is pending.

        """
        env: dict[str, object] = {
            "responseCode": self.response_code,
            "response": self.response,
        }
        if self.challenge is not None:
            env[CHALLENGE_SESSION_HEADER] = self.challenge.session_id
            env[CHALLENGE_NODE_HEADER] = self.challenge.node_id
        return env


class Aggcat:
    """Client for the aggregation service, scoped to one customer."""

    def __init__(self, transport: Transport, config: AggcatConfig) -> None:
        """Initialize new instance.

        Args:
            transport: async callable that sends signed requests.
            config: resolved configuration, see `AggcatConfig.resolve`.

        """
        self._transport = transport
        self._config = config

    @property
    def customer_id(self) -> str:
        """Customer all requests are scoped to."""
        return self._config.customer_id

    async def institutions(self) -> Result:
        """List all institutions."""
        return await self._get("/institutions")

    async def institution(self, institution_id: str) -> Result:
        """Retrieve institution details, including its credential fields.

        Raises:
            InvalidArgumentError: if `institution_id` is empty.
            InstitutionNotFoundError: if the service does not know the institution.

        """
        validate_required(institution_id=institution_id)
        try:
            return await self._get(f"/institutions/{_segment(institution_id)}")
        except TransportError as e:
            if e.status_code == HTTPStatus.NOT_FOUND:
                msg = f"Institution not found: {institution_id}"
                raise InstitutionNotFoundError(msg, e.status_code, e.body) from e
            raise

    async def resolve_fields(self, institution_id: str) -> list[InstitutionField]:
        """Retrieve an institution's credential fields in display order.

        Args:
            institution_id: institution to look up.

        Returns:
            Fields sorted ascending by display order. The first binds to the
            username and the second to the password.

        Raises:
            MalformedInstitutionMetadataError: if fewer than two fields exist.
            UnexpectedResponseShapeError: if the metadata cannot be parsed.

        """
        result = await self.institution(institution_id)
        try:
            detail = InstitutionRespModel.model_validate(result.response).institution_detail
        except ValidationError as e:
            msg = "Failed to parse institution response"
            raise UnexpectedResponseShapeError(msg) from e
        keys = detail.keys.key if detail.keys is not None else []
        if len(keys) < 2:  # noqa: PLR2004
            msg = (
                f"Institution {institution_id} has {len(keys)} credential field(s), "
                "expected at least 2"
            )
            raise MalformedInstitutionMetadataError(msg)
        fields = [InstitutionField(name=k.name, display_order=k.display_order) for k in keys]
        return sorted(fields, key=lambda f: f.display_order)

    async def discover_and_add_accounts(
        self, institution_id: str, username: str, password: str
    ) -> Result:
        """Log in to an institution and add its accounts to the customer.

        Returns:
            Result; check `state` for a pending challenge and answer it with
            `confirm_account_addition`.

        """
        validate_required(institution_id=institution_id, username=username, password=password)
        fields = await self.resolve_fields(institution_id)
        body = Aggcat.login_body(fields, username, password)
        logger.info("Submitting credentials for institution %s", institution_id)
        return await self._post(f"/institutions/{_segment(institution_id)}/logins", body)

    async def confirm_account_addition(
        self,
        institution_id: str,
        challenge_session_id: str,
        challenge_node_id: str,
        answer: str,
    ) -> Result:
        """Answer a challenge raised by `discover_and_add_accounts`."""
        validate_required(
            institution_id=institution_id,
            challenge_session_id=challenge_session_id,
            challenge_node_id=challenge_node_id,
            answer=answer,
        )
        logger.info("Answering challenge for institution %s", institution_id)
        return await self._post(
            f"/institutions/{_segment(institution_id)}/logins",
            Aggcat.challenge_body(answer),
            _challenge_headers(challenge_session_id, challenge_node_id),
        )

    async def accounts(self) -> Result:
        """List all accounts of the customer."""
        return await self._get("/accounts")

    async def account(self, account_id: str) -> Result:
        """Retrieve one account."""
        validate_required(account_id=account_id)
        return await self._get(f"/accounts/{_segment(account_id)}")

    async def account_transactions(
        self, account_id: str, start_date: date, end_date: date | None = None
    ) -> Result:
        """Retrieve transactions of an account.

        Args:
            account_id: account to query.
            start_date: first day, inclusive.
            end_date: last day, inclusive. Omitted from the query when `None`.

        Returns:
            Result holding the transaction list.

        """
        validate_required(account_id=account_id, start_date=start_date)
        uri = (
            f"/accounts/{_segment(account_id)}/transactions"
            f"?txnStartDate={start_date.strftime(DATE_FORMAT)}"
        )
        if end_date is not None:
            uri += f"&txnEndDate={end_date.strftime(DATE_FORMAT)}"
        return await self._get(uri)

    async def update_login(
        self, institution_id: str, login_id: str, username: str, password: str
    ) -> Result:
        """Replace the credentials of a login and refresh it.

        Returns:
            Result; answer a pending challenge with `update_login_confirmation`.

        """
        validate_required(
            institution_id=institution_id,
            login_id=login_id,
            username=username,
            password=password,
        )
        fields = await self.resolve_fields(institution_id)
        body = Aggcat.login_body(fields, username, password)
        logger.info("Updating credentials of login %s", login_id)
        return await self._put(f"/logins/{_segment(login_id)}?refresh=true", body)

    async def update_login_confirmation(
        self,
        login_id: str,
        challenge_session_id: str,
        challenge_node_id: str,
        answer: str,
    ) -> Result:
        """Answer a challenge raised by `update_login`."""
        validate_required(
            login_id=login_id,
            challenge_session_id=challenge_session_id,
            challenge_node_id=challenge_node_id,
            answer=answer,
        )
        logger.info("Answering challenge for login %s", login_id)
        return await self._put(
            f"/logins/{_segment(login_id)}?refresh=true",
            Aggcat.challenge_body(answer),
            _challenge_headers(challenge_session_id, challenge_node_id),
        )

    async def delete_account(self, account_id: str) -> Result:
        """Delete an account."""
        validate_required(account_id=account_id)
        return await self._delete(f"/accounts/{_segment(account_id)}")

    async def delete_customer(self) -> Result:
        """Delete the customer and everything aggregated for it."""
        return await self._delete("/customers")

    @staticmethod
    def login_body(
        fields: Sequence[InstitutionField], username: str, password: str
    ) -> str:
        """Return the XML login document for an institution.

        Args:
            fields: credential fields in display order, see `resolve_fields`.
            username: bound to the first field, whatever its name.
            password: bound to the second field.

        Returns:
            Namespaced `InstitutionLogin` document.

        Raises:
            MalformedInstitutionMetadataError: if fewer than two fields are given.

        """
        if len(fields) < 2:  # noqa: PLR2004
            msg = f"Expected 2 credential fields, got {len(fields)}"
            raise MalformedInstitutionMetadataError(msg)
        credentials = [
            {"name": f.name, "value": value}
            for f, value in zip(fields[:2], (username, password))
        ]
        context = {"login_namespace": LOGIN_NAMESPACE, "credentials": credentials}
        return cast(
            str,
            pystache.render(Aggcat._template("institutionLogin.xml.mustache"), context),  # pyright: ignore[reportUnknownMemberType]
        )

    @staticmethod
    def challenge_body(answer: str) -> str:
        """Return the XML challenge-answer document.

        Args:
            answer: the user's answer, escaped as XML text.

        Returns:
            `InstitutionLogin` document holding one challenge response.

        """
        context = {
            "login_namespace": LOGIN_NAMESPACE,
            "challenge_namespace": CHALLENGE_NAMESPACE,
            "answer": answer,
        }
        return cast(
            str,
            pystache.render(Aggcat._template("challengeAnswer.xml.mustache"), context),  # pyright: ignore[reportUnknownMemberType]
        )

    @staticmethod
    def _template(name: str) -> str:
        return files("aggcat_helper").joinpath(f"aggcat-templates/{name}").read_text()

    async def _get(self, uri: str) -> Result:
        return await self._request("GET", uri)

    async def _post(
        self, uri: str, body: str, headers: Mapping[str, str] | None = None
    ) -> Result:
        return await self._request("POST", uri, body, {**(headers or {}), **XML_CONTENT_TYPE})

    async def _put(
        self, uri: str, body: str, headers: Mapping[str, str] | None = None
    ) -> Result:
        return await self._request("PUT", uri, body, {**(headers or {}), **XML_CONTENT_TYPE})

    async def _delete(self, uri: str) -> Result:
        return await self._request("DELETE", uri, None, XML_CONTENT_TYPE)

    async def _request(
        self,
        method: str,
        uri: str,
        body: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Result:
        url = self._config.base_url + uri
        resp = await self._transport(method, url, body, headers)
        logger.debug("%s %s -> %s", method, url, resp.status_code)
        return Aggcat._classify(resp)

    @staticmethod
    def _classify(resp: TransportResponse) -> Result:
        session_id = resp.header(CHALLENGE_SESSION_HEADER)
        if session_id:
            node_id = resp.header(CHALLENGE_NODE_HEADER)
            if not node_id:
                msg = f"{CHALLENGE_SESSION_HEADER} without {CHALLENGE_NODE_HEADER}"
                raise UnexpectedResponseShapeError(msg)
            logger.info("Service requested a challenge answer, session %s", session_id)
            return Result(
                response_code=resp.status_code,
                response=_parse(resp.body),
                challenge=ChallengeState(session_id=session_id, node_id=node_id),
            )
        if not HTTPStatus.OK <= resp.status_code < HTTPStatus.MULTIPLE_CHOICES:
            msg = f"Request failed, code: {resp.status_code}, text: {resp.body}"
            raise TransportError(msg, resp.status_code, resp.body)
        return Result(response_code=resp.status_code, response=_parse(resp.body))


def _parse(body: str) -> dict[str, object] | None:
    try:
        return parse_xml(body)
    except ET.ParseError as e:
        msg = "Failed to parse response body as XML"
        raise UnexpectedResponseShapeError(msg) from e


def _segment(value: str) -> str:
    return quote(str(value), safe="")


def _challenge_headers(session_id: str, node_id: str) -> dict[str, str]:
    return {CHALLENGE_SESSION_HEADER: session_id, CHALLENGE_NODE_HEADER: node_id}
