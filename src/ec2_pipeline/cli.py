#!/usr/bin/env python3
"""
EC2 Pipeline CLI Tool
Synthesize, inspect and diagram the EC2 web server pipeline stack.
"""

import argparse
import io
import json
import sys
import logging
from pathlib import Path
from typing import Dict, List, Any, Optional

from ruamel.yaml import YAML

from .app import build_app, component_overrides_from_context
from .components import BUILD_ORDER
from .config import HierarchicalConfigLoader, StackSettings, validate_config
from .deployment import DeploymentClient
from .stack import describe_topology


# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def parse_context(pairs: Optional[List[str]]) -> Dict[str, str]:
    """Parse repeated ``KEY=VALUE`` options into a dict."""
    context = {}
    for pair in pairs or []:
        if '=' not in pair:
            raise ValueError(f"Context must be KEY=VALUE, got: {pair}")
        key, value = pair.split('=', 1)
        context[key.strip()] = value
    return context


def dump_yaml(data: Any) -> str:
    yaml = YAML()
    yaml.default_flow_style = False
    stream = io.StringIO()
    yaml.dump(data, stream)
    return stream.getvalue()


class PipelineCLI:
    """CLI for the EC2 pipeline stack."""

    def __init__(self, args: argparse.Namespace):
        self.args = args
        self.context = parse_context(getattr(args, 'context', None))
        if getattr(args, 'region', None):
            self.context.setdefault('region', args.region)
        self.config_loader = HierarchicalConfigLoader(getattr(args, 'config', None))

    def _echo(self, message: str = ""):
        if not self.args.quiet:
            print(message)

    def _component_overrides(self) -> Dict[str, Dict[str, Any]]:
        return component_overrides_from_context(self.context, self.config_loader)

    def _stack_settings(self) -> StackSettings:
        stack_overrides = {k: self.context[k] for k in ('account', 'region') if k in self.context}
        return validate_config(
            self.config_loader.get_global_config({'stack': stack_overrides} if stack_overrides else None)
        )

    def _deployment_client(self, settings: StackSettings) -> DeploymentClient:
        """Client for the region the stack is declared in unless --region says otherwise."""
        return DeploymentClient(region=self.args.region or settings.region, profile=self.args.profile)

    def synth(self, output_dir: str = "cdk.out") -> int:
        """Synthesize the cloud assembly."""
        if self.args.verbose:
            print(f"Synthesizing into {output_dir}...")

        app, stack = build_app(
            context=self.context or None,
            outdir=output_dir,
            config_loader=self.config_loader
        )
        assembly = app.synth()
        artifact = assembly.get_stack_by_name(stack.stack_name)

        self._echo(f"✓ Synthesized {stack.stack_name}")
        self._echo(f"  Template: {artifact.template_full_path}")
        return 0

    def describe(self, output_format: str = 'json', output_file: Optional[str] = None) -> int:
        """Describe the declared resources without synthesizing."""
        topology = describe_topology(self.config_loader, self._component_overrides())

        if output_format == 'json':
            output_data = json.dumps(topology, indent=2, default=str)
        elif output_format == 'yaml':
            output_data = dump_yaml(topology)
        elif output_format == 'table':
            output_data = self._format_table(topology)
        else:
            print(f"Error: Unsupported output format '{output_format}'")
            return 1

        if output_file:
            Path(output_file).write_text(output_data)
            self._echo(f"Output saved to: {output_file}")
        else:
            print(output_data)
        return 0

    def _format_table(self, topology: List[Dict[str, Any]]) -> str:
        """Format topology as a table."""
        lines = []
        lines.append(f"{'Component':<30} {'Type':<34} {'Name':<28} {'Depends on'}")
        lines.append("-" * 110)

        for entry in topology:
            depends_on = ", ".join(entry['depends_on']) or "-"
            lines.append(
                f"{entry['component']:<30} {entry['type']:<34} {entry['name'][:27]:<28} {depends_on}"
            )

        return "\n".join(lines)

    def diagram(self, output: Optional[str] = None, output_format: str = 'mermaid') -> int:
        """Generate a topology diagram."""
        topology = describe_topology(self.config_loader, self._component_overrides())

        if output_format == 'mermaid':
            from .mermaid import MermaidTopologyGenerator

            diagram = MermaidTopologyGenerator().generate(topology)
            if output:
                output_path = Path(output)
                if output_path.suffix != '.md':
                    output_path = output_path.with_suffix('.md')
                output_path.write_text(f"# EC2 Pipeline Topology\n\n```mermaid\n{diagram}\n```\n")
                self._echo(f"Mermaid diagram saved to {output_path}")
            else:
                print(diagram)
            return 0

        from .diagram import TopologyDiagramGenerator

        result = TopologyDiagramGenerator().generate_diagram(
            topology,
            output_path=output or "ec2_pipeline",
            outformat=output_format
        )
        if not any(result.values()):
            print("Error: Diagram generation failed")
            return 1

        self._echo("✓ Diagram generated successfully:")
        for file_type, path in result.items():
            if path:
                self._echo(f"  {file_type.upper()}: {path}")
        return 0

    def show_config(self, show_sources: bool = False) -> int:
        """Print the merged configuration."""
        if show_sources:
            for source in self.config_loader.get_config_sources():
                marker = "✓" if source['exists'] else "-"
                print(f"{marker} {source['source']:<8} {source['path']}")
            return 0

        overrides = self._component_overrides()
        components: Dict[str, Dict[str, Any]] = {}
        for service, resource_type in BUILD_ORDER:
            components.setdefault(service, {})[resource_type] = self.config_loader.get_component_config(
                service, resource_type, overrides.get(f"{service}.{resource_type}")
            )

        print(dump_yaml({
            'global': self.config_loader.get_global_config(),
            'components': components
        }), end='')
        return 0

    def outputs(self, stack_name: Optional[str] = None) -> int:
        """Print the deployed web server address."""
        settings = self._stack_settings()
        stack_name = stack_name or settings.name
        client = self._deployment_client(settings)

        address = client.get_instance_address(stack_name)
        if not address:
            print(f"Error: Stack {stack_name} has no public address output")
            return 1

        if self.args.quiet:
            print(address)
        else:
            print(f"Web server: http://{address}")
        return 0

    def preflight(self) -> int:
        """Check the inputs the stack needs before it can deploy."""
        overrides = self._component_overrides()
        failures = 0

        instance_config = self.config_loader.get_component_config(
            'ec2', 'instance', overrides.get('ec2.instance')
        )
        script = Path(instance_config.get('bootstrap_script', ''))
        if script.is_file():
            self._echo(f"✓ Bootstrap script: {script}")
        else:
            print(f"✗ Bootstrap script not found: {script}")
            failures += 1

        pipeline_config = self.config_loader.get_component_config(
            'codepipeline', 'pipeline', overrides.get('codepipeline.pipeline')
        )
        secret_name = pipeline_config.get('source', {}).get('oauth_secret_name', 'github-oauth-token')
        client = self._deployment_client(self._stack_settings())
        if client.check_secret(secret_name):
            self._echo(f"✓ GitHub token secret: {secret_name}")
        else:
            print(f"✗ GitHub token secret not found: {secret_name}")
            failures += 1

        return 1 if failures else 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        description="EC2 web server + delivery pipeline stack",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s synth                                  # Write the cloud assembly to cdk.out
  %(prog)s -c github_owner=me describe --output table
  %(prog)s diagram --format png --output topology # Render with Graphviz
  %(prog)s preflight                              # Check script and token secret
  %(prog)s outputs                                # Public address of the deployed server
        """
    )

    # Global options
    parser.add_argument('--config', help='Configuration file path')
    parser.add_argument('--region', help='AWS region (default: from the AWS profile)')
    parser.add_argument('--profile', help='AWS profile')
    parser.add_argument('-c', '--context', action='append', metavar='KEY=VALUE',
                        help='CDK context value (e.g. github_owner=me); repeatable')
    parser.add_argument('-v', '--verbose', action='store_true', help='Verbose output')
    parser.add_argument('-q', '--quiet', action='store_true', help='Quiet mode')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    synth_parser = subparsers.add_parser('synth', help='Synthesize the CloudFormation template')
    synth_parser.add_argument('--output-dir', default='cdk.out', help='Cloud assembly directory (default: cdk.out)')

    describe_parser = subparsers.add_parser('describe', help='Describe the declared resources')
    describe_parser.add_argument('--output', choices=['json', 'yaml', 'table'], default='json',
                                 help='Output format (default: json)')
    describe_parser.add_argument('--output-file', help='Save output to file')

    diagram_parser = subparsers.add_parser('diagram', help='Generate a topology diagram')
    diagram_parser.add_argument('--format', choices=['mermaid', 'png', 'svg', 'dot'], default='mermaid',
                                help='Output format (default: mermaid)')
    diagram_parser.add_argument('--output', help='Output file (without extension for Graphviz formats)')

    config_parser = subparsers.add_parser('config', help='Show the merged configuration')
    config_parser.add_argument('--sources', action='store_true', help='List configuration files instead')

    outputs_parser = subparsers.add_parser('outputs', help='Show the deployed web server address')
    outputs_parser.add_argument('--stack-name', help='Stack name (default: from configuration)')

    subparsers.add_parser('preflight', help='Check deploy prerequisites')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Set logging level based on verbosity
    if args.verbose:
        logging.getLogger().setLevel(logging.INFO)
        logging.getLogger('ec2_pipeline').setLevel(logging.DEBUG)
    elif args.quiet:
        logging.getLogger().setLevel(logging.ERROR)

    if not args.command:
        parser.print_help()
        return 1

    if args.verbose and args.quiet:
        print("Error: Cannot use both --verbose and --quiet")
        return 1

    try:
        cli = PipelineCLI(args)

        if args.command == 'synth':
            return cli.synth(args.output_dir)
        elif args.command == 'describe':
            return cli.describe(args.output, args.output_file)
        elif args.command == 'diagram':
            return cli.diagram(args.output, args.format)
        elif args.command == 'config':
            return cli.show_config(args.sources)
        elif args.command == 'outputs':
            return cli.outputs(args.stack_name)
        elif args.command == 'preflight':
            return cli.preflight()
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 1
    except Exception as e:
        logger.error(f"{args.command} failed: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        else:
            print(f"Error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
