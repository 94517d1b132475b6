#!/usr/bin/env python3
"""Simple CLI for trying the chain chat pipeline locally"""

import argparse
import asyncio
from typing import List, Optional

from app.config import settings
from app.core.chat import run_chat
from app.core.gateway import build_gateway
from app.providers.alchemy import AlchemyProvider
from app.providers.base import ChainDataError
from app.services.address import is_valid_address, parse_chains
from app.services.chains import NetworkRegistry
from app.types import ChatMessage, ChatRequest, PortfolioResult


def print_portfolio(portfolio: PortfolioResult):
    """Pretty print portfolio data"""
    print("\n🔄 Portfolio Analysis")
    print("=" * 50)
    print(f"Address: {portfolio.address}")
    print(f"Networks: {', '.join(portfolio.networks_checked)}")
    print(f"Total Value: ${portfolio.total_value_usd:,.2f} USD")
    print(f"Token Count: {len(portfolio.tokens)}")

    if portfolio.tokens:
        print("\nTokens:")
        print("-" * 50)

        for i, token in enumerate(portfolio.tokens, 1):
            value_str = f"${token.value_usd:,.2f}" if token.value_usd is not None else "No price"
            price_str = f"@ ${token.price_usd:,.4f}" if token.price_usd is not None else ""

            print(f"{i:2d}. {token.balance:>18} {token.symbol:<8} {value_str:>12} {price_str}")
            if token.name and token.name != token.symbol:
                print(f"    {token.name} ({token.network})")

    for item in portfolio.failed_networks:
        print(f"\n⚠️  {item.network}: {item.error}")


async def cli_portfolio(address: str, chains: Optional[str] = None):
    """CLI command to get portfolio"""
    if not is_valid_address(address):
        print("❌ Invalid wallet address (expected 0x followed by 40 hex characters)")
        return

    networks = parse_chains(chains, default=settings.default_networks)
    print(f"🔍 Fetching portfolio for {address} on {', '.join(networks)}...")

    client = AlchemyProvider(NetworkRegistry())
    try:
        print_portfolio(await client.get_token_balances(address, networks))
    except ChainDataError as e:
        print(f"❌ Error: {e}")
    finally:
        await client.aclose()


async def cli_chat(wallet_address: Optional[str] = None):
    """Interactive chat mode"""
    print(f"🤖 {settings.assistant_name} Chat")
    print("Type 'exit' to quit, 'help' for commands")
    print("-" * 40)

    registry = NetworkRegistry()
    client = AlchemyProvider(registry)
    gateway = build_gateway()
    messages: List[ChatMessage] = []

    try:
        while True:
            try:
                user_input = input("\n💬 You: ").strip()
            except (KeyboardInterrupt, EOFError):
                print("\nGoodbye! 👋")
                break

            if user_input.lower() in ['exit', 'quit', 'q']:
                print("Goodbye! 👋")
                break

            elif user_input.lower() in ['help', 'h']:
                print("\nCommands:")
                print("  help - Show this help")
                print("  exit - Quit the chat")
                print("  clear - Clear chat history")
                print("  check balance 0x... - Look up a wallet")
                print("  gas price on polygon - Current gas price")
                continue

            elif user_input.lower() == 'clear':
                messages = []
                print("Chat history cleared.")
                continue

            elif not user_input:
                continue

            request = ChatRequest(message=user_input, messages=messages, wallet_address=wallet_address)

            print("🤖 Assistant: ", end="")
            response = await run_chat(request, client, gateway, registry)
            print(response.response)

            messages.append(ChatMessage(role="user", content=user_input))
            messages.append(ChatMessage(role="assistant", content=response.response))
    finally:
        await client.aclose()
        await gateway.aclose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Chain chat CLI")
    subparsers = parser.add_subparsers(dest="command")

    portfolio_parser = subparsers.add_parser("portfolio", help="Get portfolio snapshot")
    portfolio_parser.add_argument("address", help="Wallet address")
    portfolio_parser.add_argument("--chains", help="Comma separated networks (default: ethereum)")

    chat_parser = subparsers.add_parser("chat", help="Interactive chat mode")
    chat_parser.add_argument("--wallet", help="Treat this address as the connected wallet")

    return parser


async def main():
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    command = args.command.lower()

    if command == "portfolio":
        await cli_portfolio(args.address, args.chains)

    elif command == "chat":
        await cli_chat(args.wallet)

    else:
        print(f"❌ Unknown command: {command}")
        parser.print_help()


if __name__ == "__main__":
    asyncio.run(main())
