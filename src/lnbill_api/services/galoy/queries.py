"""GraphQL documents sent to the Galoy API."""

WALLET_QUERY = """
query accountDefaultWallet($username: Username!, $walletCurrency: WalletCurrency) {
  wallet: accountDefaultWallet(username: $username, walletCurrency: $walletCurrency) {
    id
    walletCurrency
  }
}
"""

INVOICE_STATUS_QUERY = """
query LnInvoicePaymentStatus($input: LnInvoicePaymentStatusInput!) {
  lnInvoice: lnInvoicePaymentStatus(input: $input) {
    status
  }
}
"""

CREATE_BTC_INVOICE_MUTATION = """
mutation createInvoice($input: LnInvoiceCreateOnBehalfOfRecipientInput!) {
  lnInvoice: lnInvoiceCreateOnBehalfOfRecipient(input: $input) {
    errors {
      message
    }
    invoice {
      paymentRequest
    }
  }
}
"""

CREATE_USD_INVOICE_MUTATION = """
mutation createInvoice($input: LnUsdInvoiceCreateOnBehalfOfRecipientInput!) {
  lnInvoice: lnUsdInvoiceCreateOnBehalfOfRecipient(input: $input) {
    errors {
      message
    }
    invoice {
      paymentRequest
    }
  }
}
"""
