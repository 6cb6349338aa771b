from rest_framework import serializers


class PaymentInitSerializer(serializers.Serializer):
    # lower bound is checked by the payment service against PAYMENT_MIN_AMOUNT
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, error_messages={
        'required': 'Invalid amount',
        'invalid': 'Invalid amount',
        'null': 'Invalid amount',
    })
    method = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=32)


class IpnSerializer(serializers.Serializer):
    tran_id = serializers.CharField(max_length=64, error_messages={'required': 'No tran_id', 'blank': 'No tran_id'})
