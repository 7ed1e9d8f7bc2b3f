from eth_account import Account
from eth_account.messages import encode_defunct
from eth_utils import encode_hex

from wallet_sig import build_rpc_request, setup_logger, verify_sign_message

wpk = "0xxxx"  # Replace with a test private key

account = Account.from_key(wpk)
message = "Sign in to example.org"

setup_logger("DEBUG")


async def main():
    # What a dapp would hand to window.ethereum.request(...)
    rpc_request = build_rpc_request("personal_sign", {"message": message, "address": account.address})
    print("Wallet request:", rpc_request)

    # Stand-in for the wallet's answer
    signed = Account.sign_message(encode_defunct(text=message), wpk)

    return await verify_sign_message(
        method="personal_sign",
        from_address=account.address,
        signature=encode_hex(signed.signature),
        message=message,
        chain_id=8453,
    )


if __name__ == "__main__":
    import asyncio
    outcome = asyncio.run(main())
    print("Outcome:", outcome.to_canonical_json())
