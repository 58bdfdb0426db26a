"""Minimal ABIs for the contracts the orchestrator calls."""

ERC20_ABI = [
    {
        "name": "transfer",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "value", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "name": "balanceOf",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "approve",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "value", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "name": "allowance",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]

# Wrapped MON: deposit() wraps the attached value, withdraw(amount) unwraps
WMON_ABI = ERC20_ABI + [
    {
        "name": "deposit",
        "type": "function",
        "stateMutability": "payable",
        "inputs": [],
        "outputs": [],
    },
    {
        "name": "withdraw",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "amount", "type": "uint256"}],
        "outputs": [],
    },
]

_SWAP_ARGS = [
    {"name": "amountIn", "type": "uint256"},
    {"name": "amountOutMin", "type": "uint256"},
    {"name": "path", "type": "address[]"},
    {"name": "to", "type": "address"},
    {"name": "deadline", "type": "uint256"},
]

SWAP_ROUTER_ABI = [
    {
        "name": "swapExactTokensForTokens",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": _SWAP_ARGS,
        "outputs": [{"name": "amounts", "type": "uint256[]"}],
    },
    {
        "name": "swapExactETHForTokens",
        "type": "function",
        "stateMutability": "payable",
        "inputs": _SWAP_ARGS[1:],
        "outputs": [{"name": "amounts", "type": "uint256[]"}],
    },
    {
        "name": "swapExactTokensForETH",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": _SWAP_ARGS,
        "outputs": [{"name": "amounts", "type": "uint256[]"}],
    },
    {
        "name": "getAmountsOut",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "amountIn", "type": "uint256"},
            {"name": "path", "type": "address[]"},
        ],
        "outputs": [{"name": "amounts", "type": "uint256[]"}],
    },
]

# Apriori liquid staking. The aprMON token is the staking contract itself.
STAKING_ABI = ERC20_ABI + [
    {
        "name": "deposit",
        "type": "function",
        "stateMutability": "payable",
        "inputs": [
            {"name": "_amount", "type": "uint256"},
            {"name": "_receiver", "type": "address"},
        ],
        "outputs": [],
    },
    # selector 0x7d41c86e
    {
        "name": "withdraw",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "_amount", "type": "uint256"},
            {"name": "_from", "type": "address"},
            {"name": "_receiver", "type": "address"},
        ],
        "outputs": [],
    },
]

NFT_LAUNCHPAD_ABI = [
    {
        "name": "createCollection",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "name", "type": "string"},
            {"name": "symbol", "type": "string"},
            {"name": "supply", "type": "uint256"},
            {"name": "royaltyRecipient", "type": "address"},
            {"name": "salt", "type": "bytes32"},
        ],
        "outputs": [{"name": "", "type": "address"}],
    },
]

NFT_COLLECTION_ABI = [
    {
        "name": "setInitialConfig",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "maxSupply", "type": "uint256"},
            {"name": "mintPrice", "type": "uint256"},
            {"name": "limitPerWallet", "type": "uint256"},
            {"name": "startTime", "type": "uint64"},
            {"name": "endTime", "type": "uint64"},
            {"name": "royaltyFee", "type": "uint256"},
            {"name": "isAllowlist", "type": "bool"},
            {"name": "allowlistAddresses", "type": "address[]"},
            {"name": "baseURI", "type": "string"},
            {"name": "contractURI", "type": "string"},
        ],
        "outputs": [],
    },
]
