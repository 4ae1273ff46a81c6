r"""Aggregate institution accounts and transactions through a signed REST service.

## Usage

```python
from aggcat_helper import Aggcat, AggcatConfig, HttpxTransport, LoginState

config = AggcatConfig.resolve(customer_id="customer-1")
# `signer` is your httpx.Auth that signs requests with the customer's token.
async with HttpxTransport.from_config(config, auth=signer) as transport:
    aggcat = Aggcat(transport, config)
    result = await aggcat.discover_and_add_accounts("100000", "user", "secret")
    while result.state is LoginState.CHALLENGE_PENDING:
        answer = input(f"Challenge: {result.response}\n> ")
        result = await aggcat.confirm_account_addition(
            "100000", result.challenge.session_id, result.challenge.node_id, answer
        )
    print(result.response)
```
"""

from .aggcat import Aggcat, ChallengeState, InstitutionField, LoginState, Result
from .config import AggcatConfig, AggcatSettings
from .errors import (
    AggcatError,
    InstitutionNotFoundError,
    InvalidArgumentError,
    MalformedInstitutionMetadataError,
    TransportError,
    UnexpectedResponseShapeError,
)
from .transport import HttpxTransport, Transport, TransportResponse


__all__ = [  # noqa: RUF022
    "Aggcat",
    "AggcatConfig",
    "AggcatSettings",
    "ChallengeState",
    "InstitutionField",
    "LoginState",
    "Result",
    "Transport",
    "TransportResponse",
    "HttpxTransport",
    "AggcatError",
    "InvalidArgumentError",
    "MalformedInstitutionMetadataError",
    "TransportError",
    "InstitutionNotFoundError",
    "UnexpectedResponseShapeError",
]
