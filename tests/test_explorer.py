import pytest
from sol_sdk.address import TOKEN_PROGRAM_ID
from sol_sdk.explorer import explorer_url
from sol_sdk.utils.base58 import b58encode

SIG = b58encode(bytes(range(1, 65)))


def test_transaction_links_per_cluster():
    assert explorer_url(signature=SIG) == f"https://explorer.solana.com/tx/{SIG}?cluster=devnet"
    assert explorer_url(signature=SIG, cluster="testnet") == (
        f"https://explorer.solana.com/tx/{SIG}?cluster=testnet"
    )
    assert explorer_url(signature=SIG, cluster="mainnet-beta") == f"https://explorer.solana.com/tx/{SIG}"


def test_address_link():
    assert explorer_url(address=TOKEN_PROGRAM_ID, cluster="mainnet-beta") == (
        "https://explorer.solana.com/address/TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
    )
    assert explorer_url(address=str(TOKEN_PROGRAM_ID)).endswith("?cluster=devnet")


def test_local_and_custom_clusters():
    assert explorer_url(signature=SIG, cluster="localnet") == (
        f"https://explorer.solana.com/tx/{SIG}?cluster=custom&customUrl=http%3A%2F%2Flocalhost%3A8899"
    )
    assert explorer_url(signature=SIG, cluster="custom", custom_url="http://10.0.0.5:8899") == (
        f"https://explorer.solana.com/tx/{SIG}?cluster=custom&customUrl=http%3A%2F%2F10.0.0.5%3A8899"
    )
    with pytest.raises(ValueError):
        explorer_url(signature=SIG, cluster="custom")


def test_custom_base():
    assert explorer_url(signature=SIG, cluster="mainnet-beta", base="https://solscan.io/") == (
        f"https://solscan.io/tx/{SIG}"
    )


def test_invalid_arguments():
    with pytest.raises(ValueError):
        explorer_url()
    with pytest.raises(ValueError):
        explorer_url(signature=SIG, address=TOKEN_PROGRAM_ID)
    with pytest.raises(ValueError):
        explorer_url(signature=str(TOKEN_PROGRAM_ID))  # an address, not a signature
    with pytest.raises(ValueError):
        explorer_url(signature=SIG, cluster="moonnet")
    with pytest.raises(ValueError):
        explorer_url(address="not-an-address")
