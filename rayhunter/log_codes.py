"""Diag log codes and channel identifiers relevant to cellular signalling."""

# 2G log types.

LOG_GSM_RR_SIGNALING_MESSAGE_C = 0x512F

DCCH = 0x00
BCCH = 0x01
L2_RACH = 0x02
CCCH = 0x03
SACCH = 0x04
SDCCH = 0x05
FACCH_F = 0x06
FACCH_H = 0x07
L2_RACH_WITH_NO_DELAY = 0x08

# GPRS log types.

LOG_GPRS_MAC_SIGNALLING_MESSAGE_C = 0x5226

PACCH_RRBP_CHANNEL = 0x03
UL_PACCH_CHANNEL = 0x04
DL_PACCH_CHANNEL = 0x83

PACKET_CHANNEL_REQUEST = 0x20

# 5G log types.

LOG_NR_RRC_OTA_MSG_LOG_C = 0xB821

# 4G log types.

LOG_LTE_RRC_OTA_MSG_LOG_C = 0xB0C0
LOG_LTE_NAS_ESM_OTA_IN_MSG_LOG_C = 0xB0E2
LOG_LTE_NAS_ESM_OTA_OUT_MSG_LOG_C = 0xB0E3
LOG_LTE_NAS_EMM_OTA_IN_MSG_LOG_C = 0xB0EC
LOG_LTE_NAS_EMM_OTA_OUT_MSG_LOG_C = 0xB0ED

LTE_BCCH_BCH_V0 = 1
LTE_BCCH_DL_SCH_V0 = 2
LTE_MCCH_V0 = 3
LTE_PCCH_V0 = 4
LTE_DL_CCCH_V0 = 5
LTE_DL_DCCH_V0 = 6
LTE_UL_CCCH_V0 = 7
LTE_UL_DCCH_V0 = 8

LTE_BCCH_BCH_V14 = 1
LTE_BCCH_DL_SCH_V14 = 2
LTE_MCCH_V14 = 4
LTE_PCCH_V14 = 5
LTE_DL_CCCH_V14 = 6
LTE_DL_DCCH_V14 = 7
LTE_UL_CCCH_V14 = 8
LTE_UL_DCCH_V14 = 9

LTE_BCCH_BCH_V9 = 8
LTE_BCCH_DL_SCH_V9 = 9
LTE_MCCH_V9 = 10
LTE_PCCH_V9 = 11
LTE_DL_CCCH_V9 = 12
LTE_DL_DCCH_V9 = 13
LTE_UL_CCCH_V9 = 14
LTE_UL_DCCH_V9 = 15

LTE_BCCH_BCH_V19 = 1
LTE_BCCH_DL_SCH_V19 = 3
LTE_MCCH_V19 = 6
LTE_PCCH_V19 = 7
LTE_DL_CCCH_V19 = 8
LTE_DL_DCCH_V19 = 9
LTE_UL_CCCH_V19 = 10
LTE_UL_DCCH_V19 = 11

LTE_BCCH_BCH_NB = 45
LTE_BCCH_DL_SCH_NB = 46
LTE_PCCH_NB = 47
LTE_DL_CCCH_NB = 48
LTE_DL_DCCH_NB = 49
LTE_UL_CCCH_NB = 50
LTE_UL_DCCH_NB = 52

# 3G log types.

RRCLOG_SIG_UL_CCCH = 0
RRCLOG_SIG_UL_DCCH = 1
RRCLOG_SIG_DL_CCCH = 2
RRCLOG_SIG_DL_DCCH = 3
RRCLOG_SIG_DL_BCCH_BCH = 4
RRCLOG_SIG_DL_BCCH_FACH = 5
RRCLOG_SIG_DL_PCCH = 6
RRCLOG_SIG_DL_MCCH = 7
RRCLOG_SIG_DL_MSCH = 8
RRCLOG_EXTENSION_SIB = 9
RRCLOG_SIB_CONTAINER = 10

# 3G layer 3 packets.

WCDMA_SIGNALLING_MESSAGE = 0x412F

# Upper layers.

LOG_DATA_PROTOCOL_LOGGING_C = 0x11EB

LOG_UMTS_NAS_OTA_MESSAGE_LOG_PACKET_C = 0x713A