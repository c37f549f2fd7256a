"""GraphQL documents for the Shopify Admin API."""

GET_COLLECTIONS = """
query getCollections($first: Int!) {
  collections(first: $first) {
    edges {
      node {
        id
        title
        handle
        productsCount {
          count
        }
      }
    }
  }
}
"""

GET_COLLECTION_PRODUCTS = """
query getCollectionProducts($collectionId: ID!, $first: Int!, $after: String, $variantsFirst: Int!) {
  collection(id: $collectionId) {
    id
    title
    products(first: $first, after: $after) {
      pageInfo {
        hasNextPage
        endCursor
      }
      edges {
        node {
          id
          title
          handle
          status
          variants(first: $variantsFirst) {
            edges {
              node {
                id
                price
                inventoryItem {
                  measurement {
                    weight {
                      unit
                      value
                    }
                  }
                }
              }
            }
          }
        }
      }
    }
  }
}
"""

GET_PRODUCT_VARIANTS = """
query getProduct($id: ID!, $variantsFirst: Int!) {
  product(id: $id) {
    id
    title
    handle
    status
    variants(first: $variantsFirst) {
      edges {
        node {
          id
          price
          inventoryItem {
            measurement {
              weight {
                unit
                value
              }
            }
          }
        }
      }
    }
  }
}
"""

GET_ORDER = """
query getOrder($orderId: ID!, $lineItemsFirst: Int!) {
  order(id: $orderId) {
    id
    name
    createdAt
    subtotalPriceSet { shopMoney { amount currencyCode } }
    totalTaxSet { shopMoney { amount currencyCode } }
    totalPriceSet { shopMoney { amount currencyCode } }
    totalDiscountsSet { shopMoney { amount currencyCode } }
    totalShippingPriceSet { shopMoney { amount currencyCode } }
    customer {
      firstName
      lastName
      email
    }
    shippingAddress {
      firstName
      lastName
      address1
      address2
      city
      province
      country
      zip
    }
    lineItems(first: $lineItemsFirst) {
      edges {
        node {
          title
          quantity
          originalUnitPriceSet { shopMoney { amount } }
          discountedUnitPriceSet { shopMoney { amount } }
          variant {
            inventoryItem {
              measurement {
                weight {
                  unit
                  value
                }
              }
            }
          }
          product {
            description
            featuredImage {
              url
              altText
            }
          }
        }
      }
    }
  }
}
"""

BULK_UPDATE_VARIANTS = """
mutation productVariantsBulkUpdate($productId: ID!, $variants: [ProductVariantsBulkInput!]!) {
  productVariantsBulkUpdate(productId: $productId, variants: $variants) {
    product {
      id
    }
    productVariants {
      id
      price
    }
    userErrors {
      field
      message
    }
  }
}
"""

UPDATE_VARIANT = """
mutation productVariantUpdate($input: ProductVariantInput!) {
  productVariantUpdate(input: $input) {
    productVariant {
      id
      price
    }
    userErrors {
      field
      message
    }
  }
}
"""
