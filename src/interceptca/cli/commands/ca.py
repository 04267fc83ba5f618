"""CA subcommands, registered as user-visible workflows.

Each handler obtains the transient CA through the manager owned by
the application context and returns its output as a list of strings.
"""

from __future__ import annotations

import functools
import logging
import shlex
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

from interceptca.ca.generator import ca_environment, sign_leaf
from interceptca.workflows.engine import ConfigurationOptions, new_workflow_identifier

if TYPE_CHECKING:
    from interceptca.app.context import AppContext
    from interceptca.ca.manager import CertAuthorityManager
    from interceptca.workflows.engine import InvocationContext, WorkflowEngine

log = logging.getLogger(__name__)

WORKFLOWID_CA_PATH = new_workflow_identifier("ca.path")
WORKFLOWID_CA_PEM = new_workflow_identifier("ca.pem")
WORKFLOWID_CA_ENV = new_workflow_identifier("ca.env")
WORKFLOWID_CA_SIGN = new_workflow_identifier("ca.sign")


def init_ca_workflows(engine: WorkflowEngine, authority: CertAuthorityManager) -> None:
    """Register the ``ca.*`` workflows for *authority*."""
    for identifier, handler, options in (
        (WORKFLOWID_CA_PATH, _ca_path, ()),
        (WORKFLOWID_CA_PEM, _ca_pem, ()),
        (WORKFLOWID_CA_ENV, _ca_env, ()),
        (WORKFLOWID_CA_SIGN, _ca_sign, ("hostname",)),
    ):
        engine.register(
            identifier,
            ConfigurationOptions(options),
            functools.partial(handler, authority=authority),
        )


def run_ca(ctx: AppContext, args) -> None:
    """Handle ca subcommands."""
    identifier = {
        "path": WORKFLOWID_CA_PATH,
        "pem": WORKFLOWID_CA_PEM,
        "env": WORKFLOWID_CA_ENV,
        "sign": WORKFLOWID_CA_SIGN,
    }[args.ca_command]

    inputs: list[Any] = [args.hostname] if args.ca_command == "sign" else []
    outputs = ctx.engine.invoke(identifier, inputs)

    if args.ca_command == "sign":
        cert_pem, key_pem = outputs
        if args.key_out:
            Path(args.key_out).write_bytes(key_pem)
            log.info("Wrote leaf key to %s", args.key_out)
        sys.stdout.write(cert_pem.decode("ascii"))
        return

    for line in outputs:
        sys.stdout.write(line if line.endswith("\n") else f"{line}\n")


def _ca_path(invocation: InvocationContext, _inputs: list[Any], *, authority) -> list[Any]:
    record = authority.get_or_create(
        invocation.get_configuration(),
        invocation.get_enhanced_logger(),
    )
    return [record.cert_file]


def _ca_pem(invocation: InvocationContext, _inputs: list[Any], *, authority) -> list[Any]:
    record = authority.get_or_create(
        invocation.get_configuration(),
        invocation.get_enhanced_logger(),
    )
    return [record.cert_pem.decode("ascii")]


def _ca_env(invocation: InvocationContext, _inputs: list[Any], *, authority) -> list[Any]:
    record = authority.get_or_create(
        invocation.get_configuration(),
        invocation.get_enhanced_logger(),
    )
    return [f"export {k}={shlex.quote(v)}" for k, v in sorted(ca_environment(record).items())]


def _ca_sign(invocation: InvocationContext, inputs: list[Any], *, authority) -> list[Any]:
    (hostname,) = inputs
    record = authority.get_or_create(
        invocation.get_configuration(),
        invocation.get_enhanced_logger(),
    )
    cert_pem, key_pem = sign_leaf(record, hostname)
    return [cert_pem, key_pem]
