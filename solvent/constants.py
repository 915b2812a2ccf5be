"""Constants used throughout Solvent.

This module defines program IDs, network endpoints and pipeline limits so
they are shared by the scanner, classifier and reclaimer.
"""

# Solana program IDs
SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
TOKEN_2022_PROGRAM_ID = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"
ASSOCIATED_TOKEN_PROGRAM_ID = "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"

TOKEN_PROGRAM_IDS = (TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID)

# Program names as reported by jsonParsed instructions
SYSTEM_PROGRAM_NAME = "system"
ASSOCIATED_TOKEN_PROGRAM_NAME = "spl-associated-token-account"

# Parsed instruction types
CREATE_ACCOUNT_TYPE = "createAccount"
CREATE_ATA_TYPES = ("create", "createIdempotent")

# Networks
DEVNET = "devnet"
MAINNET_BETA = "mainnet-beta"

RPC_URLS = {
    DEVNET: "https://api.devnet.solana.com",
    MAINNET_BETA: "https://api.mainnet-beta.solana.com",
}

# Pipeline limits
SIGNATURE_PAGE_SIZE = 100
DEFAULT_SCAN_LIMIT = 1000
DEFAULT_BATCH_SIZE = 10
PROGRESS_INTERVAL = 10

# Rent
LAMPORTS_PER_SOL = 1_000_000_000
ESTIMATED_TOKEN_ACCOUNT_RENT = 2_039_280  # lamports for a 165 byte account
