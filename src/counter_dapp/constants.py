"""Constants for the counter dapp: chains and the counter contract."""

from dataclasses import dataclass

MAINNET_CHAIN_ID = 1
SEPOLIA_CHAIN_ID = 11155111

# Deployed Counter contract on Sepolia
COUNTER_ADDRESS = "0x2f513113753558b7505de6157255dc4ad3f0b17d"

COUNTER_ABI: list[dict] = [
    {
        "inputs": [],
        "name": "count",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "get",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {"inputs": [], "name": "inc", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
    {"inputs": [], "name": "dec", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
]

WRITE_FUNCTIONS = ("inc", "dec")
DECREMENT_FUNCTION = "dec"


@dataclass(frozen=True)
class ChainInfo:
    """Static description of a supported chain."""

    chain_id: int
    name: str
    native_symbol: str = "ETH"
    native_decimals: int = 18
    default_rpc_url: str | None = None


CHAINS: dict[int, ChainInfo] = {
    MAINNET_CHAIN_ID: ChainInfo(
        chain_id=MAINNET_CHAIN_ID,
        name="Ethereum",
        default_rpc_url="https://eth.drpc.org",
    ),
    SEPOLIA_CHAIN_ID: ChainInfo(
        chain_id=SEPOLIA_CHAIN_ID,
        name="Sepolia",
        default_rpc_url="https://sepolia.drpc.org",
    ),
}


def get_chain_info(chain_id: int) -> ChainInfo:
    """Get chain info from chain id.

    Args:
        chain_id: EIP-155 chain id

    Returns:
        Registered chain info, or a generic entry named after the id
    """
    info = CHAINS.get(chain_id)
    if info is None:
        return ChainInfo(chain_id=chain_id, name=f"Chain {chain_id}")
    return info
