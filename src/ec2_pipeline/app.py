#!/usr/bin/env python3
"""
CDK application entry point.

Usage:
    cdk synth
    cdk deploy -c github_owner=<you> -c github_repo=<repo>
"""

import logging
from pathlib import Path
from typing import Dict, Any, Optional, Tuple, Union

import aws_cdk as cdk

from .config import HierarchicalConfigLoader, validate_config
from .stack import Ec2PipelineStack

logger = logging.getLogger(__name__)

# CDK context key -> (component, dotted config path)
CONTEXT_OVERRIDES = {
    'github_owner': ('codepipeline.pipeline', 'source.owner'),
    'github_repo': ('codepipeline.pipeline', 'source.repo'),
    'github_branch': ('codepipeline.pipeline', 'source.branch'),
    'github_token_secret': ('codepipeline.pipeline', 'source.oauth_secret_name'),
    'bootstrap_script': ('ec2.instance', 'bootstrap_script'),
}

# CDK context key -> key under global.stack
STACK_CONTEXT_KEYS = ('account', 'region')


def _nest(path: str, value: Any) -> Dict[str, Any]:
    """Turn 'a.b.c' and a value into {'a': {'b': {'c': value}}}."""
    result: Dict[str, Any] = {}
    node = result
    keys = path.split('.')
    for key in keys[:-1]:
        node = node.setdefault(key, {})
    node[keys[-1]] = value
    return result


def component_overrides_from_context(
    context: Dict[str, Any],
    config_loader: HierarchicalConfigLoader
) -> Dict[str, Dict[str, Any]]:
    """Map recognised context values onto per-component config overrides."""
    overrides: Dict[str, Dict[str, Any]] = {}
    for context_key, (component, path) in CONTEXT_OVERRIDES.items():
        value = context.get(context_key)
        if value is None:
            continue
        overrides[component] = config_loader.deep_merge(overrides.get(component, {}), _nest(path, value))
    return overrides


def build_app(
    config_file: Optional[Union[str, Path]] = None,
    context: Optional[Dict[str, Any]] = None,
    outdir: Optional[str] = None,
    config_loader: Optional[HierarchicalConfigLoader] = None
) -> Tuple[cdk.App, Ec2PipelineStack]:
    """Create the CDK app and its single stack.

    Args:
        config_file: Explicit project config file
        context: Extra CDK context, merged with anything passed through ``cdk -c``
        outdir: Cloud assembly output directory
        config_loader: Pre-built loader; ``config_file`` is ignored when given

    Returns:
        Tuple of (app, stack)
    """
    app = cdk.App(context=context, outdir=outdir)
    loader = config_loader or HierarchicalConfigLoader(config_file)

    app_context = {
        key: app.node.try_get_context(key)
        for key in list(CONTEXT_OVERRIDES) + list(STACK_CONTEXT_KEYS)
    }

    stack_overrides = {key: app_context[key] for key in STACK_CONTEXT_KEYS if app_context[key]}
    settings = validate_config(
        loader.get_global_config({'stack': stack_overrides} if stack_overrides else None)
    )

    env = None
    if settings.account or settings.region:
        env = cdk.Environment(account=settings.account, region=settings.region)

    stack = Ec2PipelineStack(
        app,
        settings.name,
        config_loader=loader,
        component_overrides=component_overrides_from_context(app_context, loader),
        env=env,
        description=settings.description,
    )
    logger.info(f"Declared stack {settings.name}")
    return app, stack


def main():
    app, _ = build_app()
    app.synth()


if __name__ == '__main__':
    main()
